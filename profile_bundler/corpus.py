"""
Loading profile files from directories.

Files are always visited in lexicographic path order, which is the order the
rest of the engine relies on when a reference matches more than one profile.
"""

import logging
from pathlib import Path

from .codec import load_profiles
from .filters import ProfileFilter
from .models import Profile, ProfileType
from .names import OperationError

logger = logging.getLogger(__name__)


def list_profile_files(directory: Path) -> list[Path]:
    """All ``*.ini`` files directly inside ``directory``, sorted."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.glob("*.ini") if p.is_file())


def load_directory(directory: Path, profile_type: ProfileType) -> list[Profile]:
    """Profiles of ``profile_type`` from every INI file in ``directory``."""
    files = list_profile_files(directory)
    profiles: list[Profile] = []
    for path in files:
        profiles.extend(load_profiles(path, profile_type))
    logger.debug(
        "Loaded %d %s profile(s) from %d file(s) in %s",
        len(profiles), profile_type.value, len(files), directory,
    )
    return profiles


def load_corpus(profile_type: ProfileType, *directories: Path | None) -> list[Profile]:
    """Profiles from several directories, in argument order; None entries are skipped."""
    profiles: list[Profile] = []
    seen: set[Path] = set()
    for directory in directories:
        if directory is None:
            continue
        resolved = directory.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        profiles.extend(load_directory(directory, profile_type))
    return profiles


def selection_type(selection: list[Profile]) -> ProfileType:
    """The single profile type of a non-empty selection."""
    if not selection:
        raise OperationError("No profiles selected")
    types = {p.profile_type for p in selection}
    if len(types) > 1:
        raise OperationError(
            "Selection mixes profile types: " + ", ".join(sorted(t.value for t in types))
        )
    return types.pop()


def select_profiles(profiles: list[Profile], profile_filter: ProfileFilter) -> list[Profile]:
    return [p for p in profiles if profile_filter.matches(p)]


def group_by_file(profiles: list[Profile]) -> dict[Path, list[Profile]]:
    """Group profiles by their source file, preserving first-seen order."""
    groups: dict[Path, list[Profile]] = {}
    for profile in profiles:
        if profile.source_path is None:
            continue
        groups.setdefault(profile.source_path, []).append(profile)
    return groups
