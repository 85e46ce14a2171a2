"""
Selection filters for print and filament profiles.

Each profile type filters on its own fields; the filter class is picked once
from the ``ProfileType`` and then applied to every loaded profile.
"""

import re

from pydantic import BaseModel

from .models import Profile, ProfileType
from .names import extract_tags
from .values import normalize_for_comparison

_NOZZLE_CONDITION_RE = re.compile(r"nozzle_diameter\[0\]\s*==\s*(\d*\.?\d+)")


def _norm(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower()


class ProfileFilter(BaseModel):
    """Base class: a filter with no criteria matches every profile."""

    def matches(self, profile: Profile) -> bool:
        return True

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class PrintFilter(ProfileFilter):
    tag: str | None = None
    layer_height: str | None = None
    nozzle: str | None = None

    def matches(self, profile: Profile) -> bool:
        if self.tag and self.tag.lower() not in print_tags(profile):
            return False
        if self.layer_height:
            wanted = normalize_for_comparison(self.layer_height, "mm")
            if normalize_for_comparison(profile.properties.get("layer_height"), "mm") != wanted:
                return False
        if self.nozzle:
            wanted = normalize_for_comparison(self.nozzle, "mm")
            if normalize_for_comparison(nozzle_from_condition(profile), "mm") != wanted:
                return False
        return True


class FilamentFilter(ProfileFilter):
    filament_type: str | None = None
    vendor: str | None = None

    def matches(self, profile: Profile) -> bool:
        if self.filament_type and _norm(profile.properties.get("filament_type")) != _norm(self.filament_type):
            return False
        if self.vendor and _norm(profile.properties.get("filament_vendor")) != _norm(self.vendor):
            return False
        return True


_FILTER_CLASSES: dict[ProfileType, type[ProfileFilter]] = {
    ProfileType.PRINT: PrintFilter,
    ProfileType.FILAMENT: FilamentFilter,
}


def filter_for(profile_type: ProfileType, **criteria: str | None) -> ProfileFilter:
    """Build the filter for ``profile_type``; unknown or empty criteria are dropped."""
    filter_class = _FILTER_CLASSES[profile_type]
    fields = {k: v for k, v in criteria.items() if k in filter_class.model_fields and v}
    return filter_class(**fields)


def print_tags(profile: Profile) -> list[str]:
    """Lower-cased tags from the profile name and its ``land_fm_tags`` property."""
    tags: list[str] = []
    raw = profile.properties.get("land_fm_tags")
    if raw:
        tags.extend(t.strip().lower() for t in raw.split(",") if t.strip())
    tags.extend(t.lower() for t in extract_tags(profile.name))
    return list(dict.fromkeys(tags))


def nozzle_from_condition(profile: Profile) -> str | None:
    """Nozzle diameter pinned by ``compatible_printers_condition``, e.g. ``"0.4mm"``."""
    condition = profile.properties.get("compatible_printers_condition")
    if not condition:
        return None
    match = _NOZZLE_CONDITION_RE.search(condition)
    if not match:
        return None
    return f"{match.group(1)}mm"
