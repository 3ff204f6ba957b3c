"""
Platform and privilege checks.
"""

import ctypes
import sys


def is_windows() -> bool:
    return sys.platform == "win32"


def is_admin() -> bool:
    """True when running elevated on Windows."""
    if not is_windows():
        return False
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except (AttributeError, OSError):
        return False
