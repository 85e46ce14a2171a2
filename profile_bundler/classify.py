"""
Leaf / internal classification of a profile selection.

A selected profile is internal when another profile in the same selection
inherits from it; internal profiles are the ones a bundle relocates, leaves
always stay where they are.
"""

import logging
from dataclasses import dataclass, field

from .models import Profile
from .names import core_name, inherits_from

logger = logging.getLogger(__name__)


@dataclass
class Classification:
    internal: list[Profile] = field(default_factory=list)
    leaves: list[Profile] = field(default_factory=list)


def is_parent_of(parent: Profile, child: Profile) -> bool:
    """True if ``child`` refers to ``parent``, tolerating missing ``@tag`` tokens."""
    if child is parent or child.inherits is None:
        return False
    if inherits_from(child, parent.qualified_name):
        return True
    return core_name(child.inherits) == core_name(parent.qualified_name)


def classify_profiles(selection: list[Profile]) -> Classification:
    """Partition ``selection`` into internal and leaf profiles, keeping order."""
    result = Classification()
    for profile in selection:
        child = next((c for c in selection if is_parent_of(profile, c)), None)
        if child is not None:
            logger.debug(
                "Internal profile %s (inherited by %s)",
                profile.qualified_name, child.qualified_name,
            )
            result.internal.append(profile)
        else:
            result.leaves.append(profile)
    return result
