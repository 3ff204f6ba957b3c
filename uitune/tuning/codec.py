"""
ValueCodec - Conversion between logical tweak values and stored registry values.

Single source of truth for type coercion and comparison:
- encode: logical value → value suitable for the registry
- decode: stored value → logical value
- equal: comparison under a declared type
- parse_type: persisted/foreign type tag → ValueType

Pure functions; the only side effect is a warning log record for unknown tags.
"""

import logging
from typing import Any, Dict, Optional, Union

from ..protocol.tweak import ValueType

logger = logging.getLogger("uitune.codec")

_WIDTHS = {
    ValueType.INTEGER32: 32,
    ValueType.INTEGER64: 64,
}

_TAG_ALIASES: Dict[str, ValueType] = {}
for _vt in ValueType:
    _TAG_ALIASES[_vt.value.lower()] = _vt
    _TAG_ALIASES[_vt.name.lower()] = _vt
_TAG_ALIASES.update({
    "integer32": ValueType.INTEGER32,
    "integer64": ValueType.INTEGER64,
    "text": ValueType.TEXT,
    "expandabletext": ValueType.EXPANDABLE_TEXT,
    "reg_dword": ValueType.INTEGER32,
    "reg_qword": ValueType.INTEGER64,
    "reg_sz": ValueType.TEXT,
    "reg_expand_sz": ValueType.EXPANDABLE_TEXT,
})


def _lookup(tag: str) -> Optional[ValueType]:
    return _TAG_ALIASES.get(str(tag).strip().lower())


def parse_type(tag: Union[ValueType, str, None]) -> ValueType:
    """
    Resolve a type tag to a ValueType.

    Unknown tags degrade to TEXT with a warning; a missing tag is TEXT.
    """
    if isinstance(tag, ValueType):
        return tag
    if tag is None or str(tag).strip() == "":
        return ValueType.TEXT

    value_type = _lookup(tag)
    if value_type is None:
        logger.warning("Unknown value type tag %r, treating as %s", tag, ValueType.TEXT.value)
        return ValueType.TEXT
    return value_type


def is_known_tag(tag: Union[ValueType, str, None]) -> bool:
    """True if parse_type resolves the tag without falling back to TEXT."""
    if isinstance(tag, ValueType) or tag is None or str(tag).strip() == "":
        return True
    return _lookup(tag) is not None


def zero_value(value_type: ValueType) -> Any:
    """Default stored value for a type."""
    return 0 if value_type.is_integer else ""


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Not an integer value: {value!r}")
        return int(value)

    text = str(value).strip()
    try:
        return int(text, 0)
    except ValueError:
        # int("010", 0) is rejected; plain decimal with leading zeros is fine
        return int(text, 10)


def _normalize(value: int, value_type: ValueType) -> int:
    """Fold into the unsigned range of the type width."""
    bits = _WIDTHS[value_type]
    if value < -(1 << (bits - 1)) or value >= (1 << bits):
        raise ValueError(f"{value} does not fit in {value_type.value} ({bits} bits)")
    if value < 0:
        value += 1 << bits
    return value


def encode(value_type: Union[ValueType, str, None], logical: Any) -> Any:
    """
    Convert a logical value to its stored representation.

    None encodes to the type's zero value rather than failing.

    Raises:
        ValueError: integer value is not numeric or does not fit the type
    """
    value_type = parse_type(value_type)
    if logical is None:
        return zero_value(value_type)
    if value_type.is_integer:
        return _normalize(_to_int(logical), value_type)
    return str(logical)


def decode(value_type: Union[ValueType, str, None], raw: Any) -> Any:
    """Convert a stored value back to its logical representation."""
    value_type = parse_type(value_type)
    if raw is None:
        return zero_value(value_type)
    if value_type.is_integer:
        return _normalize(_to_int(raw), value_type)
    return str(raw)


def equal(value_type: Union[ValueType, str, None], a: Any, b: Any) -> bool:
    """
    Compare two stored values under a declared type.

    Integer types compare numerically; everything else, including an
    unknown or absent type, compares as exact strings.
    """
    if a is None or b is None:
        return a is None and b is None

    if isinstance(value_type, ValueType):
        resolved = value_type
    elif value_type is None:
        resolved = None
    else:
        resolved = _lookup(value_type)

    if resolved is not None and resolved.is_integer:
        try:
            return _normalize(_to_int(a), resolved) == _normalize(_to_int(b), resolved)
        except (TypeError, ValueError):
            pass

    return str(a) == str(b)
