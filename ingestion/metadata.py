from __future__ import annotations

import math
import traceback
from typing import Any, Dict, Mapping, Optional, Union

import orjson

# Chroma only accepts primitive metadata values; nested objects fail at upsert time.
MetadataValue = Union[str, int, float, bool, None]


class _Absent:
    """Marker for a key that carries no value at all (as opposed to an explicit None)."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


def is_metadata_value(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _type_tag(value: Any) -> str:
    return f"<{type(value).__name__}>"


def safe_to_string(value: Any) -> str:
    """
    Best-effort string for a non-primitive metadata value.

    Exceptions keep their traceback when one is attached, otherwise their
    message. Everything else is JSON-encoded (int/float/bool keys become
    strings); values orjson cannot encode (cycles, sets, arbitrary objects)
    become a type tag. Never raises.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, BaseException):
        return _describe_exception(value)
    try:
        return orjson.dumps(value, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")
    except Exception:
        return _type_tag(value)


def _describe_exception(exc: BaseException) -> str:
    try:
        if exc.__traceback__ is not None:
            return "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        return str(exc) or type(exc).__name__
    except Exception:
        # __str__ of third-party errors can itself fail
        return _type_tag(exc)


def sanitize_metadata(metadata: Any) -> Dict[str, MetadataValue]:
    """
    Normalize arbitrary loader metadata into a primitive-only mapping.

    - keys holding ABSENT are dropped
    - str / int / float / bool / None are kept as-is
    - anything else is stringified with safe_to_string()

    Never raises; a non-mapping input yields an empty dict.
    """
    out: Dict[str, MetadataValue] = {}
    if not isinstance(metadata, Mapping):
        return out

    for key, value in metadata.items():
        if value is ABSENT:
            continue
        name = key if isinstance(key, str) else safe_to_string(key)
        if is_metadata_value(value):
            out[name] = value
            continue
        out[name] = safe_to_string(value)
    return out


def get_string(meta: Mapping[str, Any], key: str) -> Optional[str]:
    """Return meta[key] when it is a string, else None."""
    value = meta.get(key)
    return value if isinstance(value, str) else None


def get_number(meta: Mapping[str, Any], key: str) -> Optional[Union[int, float]]:
    """Return meta[key] when it is a finite number (bools excluded), else None."""
    value = meta.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def extract_page(metadata: Mapping[str, Any]) -> Optional[int]:
    """
    Page number from loader-specific metadata, or None.

    Accepts a top-level `page` or a nested `loc.pageNumber`; the nested shape
    varies by loader so it is read defensively.
    """
    page = get_number(metadata, "page")
    if page is None:
        loc = metadata.get("loc")
        if isinstance(loc, Mapping):
            page = get_number(loc, "pageNumber")
    if page is None:
        return None
    return int(page) if float(page).is_integer() else None
