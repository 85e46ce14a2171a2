"""
Bundle ``[vendor]`` stanza handling.

A bundle file starts with a ``[vendor]`` stanza the slicer reads before
installing the bundle.  New bundles get a generated stanza; existing ones
keep theirs verbatim.
"""

import logging
import re
from pathlib import Path

from iniconfig import IniConfig, ParseError

from .codec import ForeignSection, ProfileDocument, parse_document, strip_comment
from .models import ProfileType, VendorInfo

logger = logging.getLogger(__name__)

VENDOR_SECTION = "vendor"

_PROPERTY_RE = re.compile(r"^(\w+)\s*=\s*(.*)$")


def vendor_section(info: VendorInfo) -> ForeignSection:
    """Build the ``[vendor]`` stanza written at the top of a new bundle."""
    return ForeignSection(
        header=VENDOR_SECTION,
        lines=[
            f"[{VENDOR_SECTION}]",
            f"repo_id = {info.repo_id}",
            "# Vendor name will be shown by the Config Wizard.",
            f"name = {info.name}",
            "# Configuration version of this file. Config file will only be installed, "
            "if the config_version differs.",
            "# This means, the server may force the PrusaSlicer configuration to be downgraded.",
            f"config_version = {info.config_version}",
        ],
    )


def ensure_vendor_section(doc: ProfileDocument, info: VendorInfo) -> bool:
    """Put a ``[vendor]`` stanza first in ``doc`` unless it already has one.

    Returns True if a stanza was added.
    """
    if doc.section(VENDOR_SECTION) is not None:
        return False
    doc.blocks.insert(0, vendor_section(info))
    return True


def read_vendor_info(path: Path) -> VendorInfo | None:
    """Read the ``[vendor]`` stanza of a bundle file, or None if it has none."""
    config = _load_ini_config(path)
    if config is not None:
        if VENDOR_SECTION not in config:
            return None
        section = config[VENDOR_SECTION]
        values = {key: value for key, value in section.items()}
    else:
        values = _scan_vendor_values(path)
        if values is None:
            return None

    name = values.get("name")
    if not name:
        return None
    info = VendorInfo(name=name)
    if values.get("repo_id"):
        info.repo_id = values["repo_id"]
    if values.get("config_version"):
        info.config_version = values["config_version"]
    return info


def bundle_profile_types(path: Path) -> list[ProfileType]:
    """Profile types that have at least one stanza in the bundle file."""
    config = _load_ini_config(path)
    if config is not None:
        section_names = [section.name for section in config]
    else:
        doc = _read_fallback_document(path)
        if doc is None:
            return []
        section_names = [f"{p.profile_type.value}:{p.name}" for pt in ProfileType for p in doc.profiles(pt)]

    found = []
    for profile_type in ProfileType:
        if any(name.startswith(profile_type.prefix) for name in section_names):
            found.append(profile_type)
    return found


# --- Internal helpers ---


def _load_ini_config(path: Path) -> IniConfig | None:
    """Load a bundle through iniconfig; None if missing or not strict INI.

    Slicer bundles may contain lines iniconfig rejects (duplicate stanzas,
    free text), in which case callers fall back to the stanza codec.
    """
    if not path.exists():
        return None
    try:
        return IniConfig(path)
    except ParseError as e:
        logger.debug("iniconfig could not parse %s (line %s): %s", path, e.lineno, e.msg)
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read bundle file %s: %s", path, e)
        return None


def _read_fallback_document(path: Path) -> ProfileDocument | None:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read bundle file %s: %s", path, e)
        return None
    return parse_document(text, ProfileType.PRINT, path.stem, source_path=path)


def _scan_vendor_values(path: Path) -> dict[str, str] | None:
    doc = _read_fallback_document(path)
    if doc is None:
        return None
    section = doc.section(VENDOR_SECTION)
    if section is None:
        return None
    values: dict[str, str] = {}
    for line in section.lines[1:]:
        match = _PROPERTY_RE.match(strip_comment(line))
        if match:
            values[match.group(1)] = match.group(2).strip()
    return values
