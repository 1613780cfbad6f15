from __future__ import annotations


# Fourth-group prefixes keep control and threat identifiers visually distinct.
CONTROL_ID_VARIANT = "a"
THREAT_ID_VARIANT = "b"

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _utf16_code_units(raw: str) -> list[int]:
    # Hash UTF-16 code units so astral characters contribute surrogate pairs;
    # lone surrogates pass through as single units.
    encoded = raw.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2)]


def rolling_hash(raw: str) -> int:
    """Return the signed 32-bit ``hash * 31 + unit`` rolling hash of ``raw``."""
    value = 0
    for unit in _utf16_code_units(raw):
        value = (value * 31 + unit) & _INT32_MASK
    if value & _INT32_SIGN:
        value -= _INT32_MASK + 1
    return value


def deterministic_id(raw: str, *, variant: str) -> str:
    """Render a UUID-shaped identifier derived only from ``raw``.

    The shape mimics UUID v4 dash grouping but is neither version-correct nor
    collision resistant; it is only meant to be stable across runs for one
    project's fixed catalog. Do not use it where an unguessable id is needed.
    """
    hex_value = format(abs(rolling_hash(raw)), "x").rjust(8, "0")
    return (
        f"{hex_value[0:8]}-{hex_value[0:4]}-4{hex_value[1:4]}-"
        f"{variant}{hex_value[1:4]}-{hex_value.ljust(12, '0')[0:12]}"
    )


def control_check_id(control_id: str, project_id: str) -> str:
    return deterministic_id(f"{project_id}:{control_id}", variant=CONTROL_ID_VARIANT)


def threat_item_id(project_id: str, category: str, index: int) -> str:
    return deterministic_id(f"{project_id}:threat:{category}:{index}", variant=THREAT_ID_VARIANT)
