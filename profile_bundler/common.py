"""
Properties shared by every profile in a set.

Used to build a synthesized parent: keys whose value is identical across all
profiles can be moved up into the parent and removed from the children.
"""

from .models import Profile

# Keys that identify a specific profile and must stay on it even when siblings
# happen to agree: printer/nozzle conditions, vendor/model ids, and the
# inheritance pointer itself.
CHILD_ONLY_PROPERTIES = frozenset({
    "compatible_printers_condition",
    "compatible_printers",
    "filament_vendor",
    "printer_model",
    "nozzle_diameter",
    "inherits",
})


def common_properties(profiles: list[Profile]) -> dict[str, str]:
    """Key/value pairs identical across all ``profiles``, minus child-only keys.

    Returned in ascending key order.  An empty input yields an empty mapping.
    """
    if not profiles:
        return {}

    common = dict(profiles[0].properties)
    for profile in profiles[1:]:
        common = {k: v for k, v in common.items() if profile.properties.get(k) == v}

    for key in CHILD_ONLY_PROPERTIES:
        common.pop(key, None)

    return dict(sorted(common.items()))


def shared_inherits(profiles: list[Profile]) -> tuple[bool, str | None]:
    """Whether all ``profiles`` declare the same ``inherits`` (possibly none).

    Returns ``(True, value)`` when they agree, ``(False, None)`` otherwise.
    """
    values = {p.inherits for p in profiles}
    if len(values) == 1:
        return True, values.pop()
    return False, None
