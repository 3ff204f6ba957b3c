"""
Entry point for running uitune as a module.

Usage:
    python -m uitune --status
"""

import sys
from pathlib import Path

# Add parent directory to path if running directly
if __package__ is None or __package__ == '':
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from uitune.cli import main
else:
    from .cli import main

if __name__ == "__main__":
    main()
