"""Deterministic names for k8s objects derived from other objects."""

from custom_builds.k8s.constants import DNS1123_LABEL_MAX_LENGTH

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


def short_hash(value: str) -> str:
    """The 32 bit FNV-1a hash of the value as 8 hex digits."""
    result = _FNV32_OFFSET
    for byte in value.encode("utf-8"):
        result ^= byte
        result = (result * _FNV32_PRIME) & 0xFFFFFFFF
    return f"{result:08x}"


def get_name(base: str, suffix: str, max_length: int) -> str:
    """Join `base` and `suffix` with a dash, keeping the result at most `max_length` long.

    When the joined name is too long the base is truncated and a hash of the
    full base is inserted, so that different long names stay distinct.
    """
    if max_length <= 0:
        return ""
    name = f"{base}-{suffix}"
    if len(name) <= max_length:
        return name

    # 10 is the length of "-<hash>-"
    base_length = max_length - 10 - len(suffix)
    if base_length < 0:
        # the suffix alone is too long, drop it
        prefix = base[: min(len(base), max(0, max_length - 9))]
        short_name = f"{prefix}-{short_hash(name)}"
        return short_name[: min(max_length, len(short_name))]

    prefix = base[:base_length]
    return f"{prefix}-{short_hash(base)}-{suffix}"


def label_value(name: str) -> str:
    """Truncate a name so that it can be used as a label value."""
    return name[:DNS1123_LABEL_MAX_LENGTH]
