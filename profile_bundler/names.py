"""
Profile name normalization and inheritance reference matching.

Profile names are hand-edited: ``inherits`` values may or may not carry the
``print:``/``filament:`` prefix, may have stray whitespace, and may omit the
``@tag`` tokens present on the parent's own header.  Matching therefore tries
progressively looser comparisons.
"""

import re
from typing import Callable

from .models import Profile, ProfileType

_TYPE_PREFIX_RE = re.compile(
    r"^(?:%s):\s*" % "|".join(re.escape(pt.value) for pt in ProfileType)
)
_TAG_RE = re.compile(r"@([^\s*]+)")
_WHITESPACE_RE = re.compile(r"\s+")

# Characters rejected by NTFS or macOS, plus control characters.
_UNSAFE_FILESYSTEM_RE = re.compile(r'[<>:"|?*\\/\x00-\x1f\x7f]')
_FILENAME_UNSAFE_RE = re.compile(r"[^\w\s@.\-()]+")


class OperationError(ValueError):
    """Raised when an operation's preconditions are not met (bad target name, mixed selection)."""


def strip_type_prefix(name: str) -> str:
    """Remove a leading ``print:``/``filament:`` prefix (and following spaces)."""
    return _TYPE_PREFIX_RE.sub("", name)


def normalize_name(name: str) -> tuple[str, list[str]]:
    """
    Split a profile name into its base name and tags.

    "print: 0.20mm QUALITY @MK3 @fast" → ("0.20mm QUALITY", ["MK3", "fast"])
    """
    name_part = strip_type_prefix(name)
    tags = _TAG_RE.findall(name_part)
    base_name = _WHITESPACE_RE.sub(" ", _TAG_RE.sub("", name_part).strip())
    return base_name, tags


def core_name(name: str) -> str:
    """Base name with prefix and tags removed."""
    return normalize_name(name)[0]


def extract_tags(name: str) -> list[str]:
    return normalize_name(name)[1]


def core_name_equals(a: str, b: str) -> bool:
    return core_name(a) == core_name(b)


# Graduated reference comparisons, tried in order from strictest to loosest.
def _exact(reference: str, parent_name: str) -> bool:
    return reference == parent_name


def _trimmed(reference: str, parent_name: str) -> bool:
    return reference.strip() == parent_name.strip()


def _prefix_stripped(reference: str, parent_name: str) -> bool:
    return strip_type_prefix(reference) == strip_type_prefix(parent_name)


def _prefix_stripped_trimmed(reference: str, parent_name: str) -> bool:
    return strip_type_prefix(reference).strip() == strip_type_prefix(parent_name).strip()


REFERENCE_CHECKS: list[Callable[[str, str], bool]] = [
    _exact,
    _trimmed,
    _prefix_stripped,
    _prefix_stripped_trimmed,
]


def reference_matches(reference: str | None, parent_name: str) -> bool:
    """Return True if an ``inherits`` value refers to ``parent_name``."""
    if not reference or not reference.strip():
        return False
    return any(check(reference, parent_name) for check in REFERENCE_CHECKS)


def inherits_from(child: Profile, parent_name: str) -> bool:
    """Return True if ``child`` declares ``parent_name`` as its parent."""
    return reference_matches(child.properties.get("inherits"), parent_name)


def is_privatized(name: str) -> bool:
    base = strip_type_prefix(name).strip()
    return len(base) >= 2 and base.startswith("*") and base.endswith("*")


def privatize(name: str) -> str:
    """Wrap a display name in asterisks; already-wrapped names are returned as-is."""
    base = strip_type_prefix(name).strip()
    if is_privatized(base):
        return base
    return f"*{base}*"


def unsafe_filesystem_chars(name: str) -> list[str]:
    """Characters in ``name`` that are not allowed in file names (deduplicated)."""
    found: list[str] = []
    for char in _UNSAFE_FILESYSTEM_RE.findall(name):
        if char not in found:
            found.append(char)
    return found


def validate_target_name(name: str) -> str:
    """Return ``name`` stripped, or raise ``OperationError`` if it cannot name a file."""
    stripped = name.strip() if name else ""
    if not stripped:
        raise OperationError("A target name is required")
    unsafe = unsafe_filesystem_chars(stripped)
    if unsafe:
        raise OperationError(
            f"Name {stripped!r} contains unsafe characters: {', '.join(unsafe)} "
            '(avoid < > : " | ? * \\ /)'
        )
    return stripped


def sanitize_filename(name: str) -> str:
    return _FILENAME_UNSAFE_RE.sub("_", name).strip()


def filename_for(name: str) -> str:
    """File stem for a profile name: prefix removed, tags kept, unsafe chars replaced."""
    return sanitize_filename(strip_type_prefix(name))
