"""
Inheritance relationships across a loaded set of profiles.

Profiles are not indexed up front: the sets involved are a few hundred
profiles at most, and matching goes through ``names.inherits_from`` so that
prefix/whitespace variants resolve the same way everywhere.  All walks keep a
visited set keyed on qualified name, so circular ``inherits`` chains end.
"""

import logging
from collections import deque
from typing import Iterable

from .models import Profile
from .names import inherits_from

logger = logging.getLogger(__name__)


def direct_children(profiles: list[Profile], parent_name: str) -> list[Profile]:
    """Profiles whose ``inherits`` refers to ``parent_name``."""
    return [p for p in profiles if inherits_from(p, parent_name)]


def descendants(profiles: list[Profile], seed_names: Iterable[str]) -> list[Profile]:
    """
    All profiles inheriting, directly or transitively, from any seed name.

    Breadth-first; each profile appears once, in first-discovery order.
    """
    queue = deque(seed_names)
    visited: set[str] = set()
    found: dict[str, Profile] = {}

    while queue:
        parent_name = queue.popleft()
        if parent_name in visited:
            continue
        visited.add(parent_name)

        for child in direct_children(profiles, parent_name):
            if child.qualified_name in found:
                continue
            found[child.qualified_name] = child
            queue.append(child.qualified_name)

    logger.debug("Found %d descendant(s)", len(found))
    return list(found.values())


def find_parent(profile: Profile, profiles: list[Profile]) -> Profile | None:
    """First profile that ``profile`` inherits from, in ``profiles`` order."""
    if profile.inherits is None:
        return None
    for candidate in profiles:
        if candidate is profile:
            continue
        if inherits_from(profile, candidate.qualified_name):
            return candidate
    logger.debug(
        "No parent found for %s (inherits = %s)", profile.qualified_name, profile.inherits
    )
    return None


def ancestor_chain(profile: Profile, profiles: list[Profile]) -> list[Profile]:
    """Ancestors of ``profile`` from its direct parent up to the root."""
    chain: list[Profile] = []
    visited = {profile.qualified_name}
    current = profile

    while True:
        parent = find_parent(current, profiles)
        if parent is None or parent.qualified_name in visited:
            break
        visited.add(parent.qualified_name)
        chain.append(parent)
        current = parent

    return chain
