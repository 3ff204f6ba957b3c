"""
Tuning module - Applies and evaluates the tweak catalog.

Components:
- codec: ValueCodec (encode/decode/equal/parse_type)
- ApplyEngine: Writes desired values with per-item failure isolation
- StatusEngine: Reports current optimization level
"""

from . import codec
from .executor import ApplyEngine
from .verifier import StatusEngine

__all__ = [
    "codec",
    "ApplyEngine",
    "StatusEngine",
]
