"""
Removal of redundant inherited properties.

A property is redundant when the profile's ancestors already supply the same
value.  Cleaning never changes a profile's effective settings, so profiles can
be cleaned in any order against the same loaded corpus.
"""

import logging
from pathlib import Path

from .codec import ProfileDocument, read_document, write_document
from .common import CHILD_ONLY_PROPERTIES
from .corpus import list_profile_files, load_corpus
from .graph import ancestor_chain, direct_children
from .models import CleanReport, Profile, ProfileType, WorkspaceConfig
from .names import OperationError, privatize, reference_matches
from .vendor import bundle_profile_types

logger = logging.getLogger(__name__)


def inherited_closure(profile: Profile, profiles: list[Profile]) -> dict[str, str]:
    """
    Settings ``profile`` inherits, merged from the root down.

    Nearer ancestors override farther ones.  ``inherits`` itself is never
    part of the closure.
    """
    closure: dict[str, str] = {}
    for ancestor in reversed(ancestor_chain(profile, profiles)):
        for key, value in ancestor.properties.items():
            if key != "inherits":
                closure[key] = value
    return closure


def redundant_properties(profile: Profile, profiles: list[Profile]) -> list[str]:
    """Keys of ``profile`` whose value equals the inherited one."""
    closure = inherited_closure(profile, profiles)
    return [
        key for key, value in profile.properties.items()
        if key != "inherits" and key in closure and closure[key] == value
    ]


def clean_profile(profile: Profile, profiles: list[Profile]) -> int:
    """Drop redundant properties from ``profile`` in place; returns how many."""
    redundant = redundant_properties(profile, profiles)
    for key in redundant:
        del profile.properties[key]
    if redundant:
        logger.debug(
            "%s: removed %d redundant properties", profile.qualified_name, len(redundant)
        )
    return len(redundant)


def _clean_file(
    path: Path,
    profile_type: ProfileType,
    corpus: list[Profile],
    report: CleanReport,
    only_children_of: list[str] | None = None,
) -> None:
    doc = read_document(path, profile_type)
    if doc is None:
        return
    report.files_processed += 1

    removed = 0
    for profile in doc.profiles():
        if only_children_of is not None and not any(
            reference_matches(profile.inherits, name) for name in only_children_of
        ):
            continue
        count = clean_profile(profile, corpus)
        if count:
            removed += count
            report.profiles_changed.append(profile.qualified_name)
    if not removed:
        return

    try:
        write_document(doc)
    except OSError as e:
        logger.warning("Could not write %s: %s", path, e)
        return
    report.properties_removed += removed
    report.files_changed.append(path)
    logger.info("Cleaned %s: removed %d properties", path.name, removed)


def clean_directory(
    profile_type: ProfileType,
    profile_dir: Path,
    bundle_dir: Path | None = None,
) -> CleanReport:
    """
    Clean every profile file in ``profile_dir``.

    Bundles in ``bundle_dir`` take part in parent resolution but are not
    modified.
    """
    report = CleanReport()
    if not profile_dir.is_dir():
        logger.warning("Profile directory %s does not exist", profile_dir)
        return report

    corpus = load_corpus(profile_type, profile_dir, bundle_dir)
    for path in list_profile_files(profile_dir):
        _clean_file(path, profile_type, corpus, report)

    logger.info(
        "Clean %s: %d file(s) processed, %d changed, %d properties removed",
        profile_type.value, report.files_processed, len(report.files_changed),
        report.properties_removed,
    )
    return report


def clean_workspace(workspace: WorkspaceConfig) -> CleanReport:
    """Clean the print and filament directories of a workspace."""
    report = CleanReport()
    for profile_type in ProfileType:
        report.merge(
            clean_directory(
                profile_type,
                workspace.profile_dir_for(profile_type),
                workspace.vendor_dir(),
            )
        )
    return report


def clean_bundle(bundle_name: str, workspace: WorkspaceConfig) -> CleanReport:
    """
    Clean a bundle file and the profiles that inherit from it.

    For every profile type in the bundle:

    1. each bundle profile loses properties its ancestors already supply;
    2. properties that every child of the ``*<bundle>*`` parent sets to the
       same value move up into that parent;
    3. profiles in the workspace that inherit from a bundle profile are
       cleaned against the updated bundle.

    Raises:
        OperationError: If the bundle file does not exist.
    """
    bundle_path = workspace.vendor_dir() / f"{bundle_name}.ini"
    if not bundle_path.is_file():
        raise OperationError(f"Bundle file not found: {bundle_path}")

    profile_types = bundle_profile_types(bundle_path)
    if not profile_types:
        logger.warning("No profile stanzas found in %s, assuming print profiles", bundle_path.name)
        profile_types = [ProfileType.PRINT]

    doc = read_document(bundle_path, profile_types[0], default_name=bundle_name)
    if doc is None:
        raise OperationError(f"Bundle file cannot be read: {bundle_path}")

    report = CleanReport(files_processed=1)
    bundle_changed = False
    for profile_type in profile_types:
        if _clean_bundle_type(doc, bundle_name, profile_type, workspace, report):
            bundle_changed = True

    if bundle_changed:
        write_document(doc)
        report.files_changed.insert(0, bundle_path)
        logger.info("Cleaned bundle %s", bundle_path.name)
    else:
        logger.info("No optimization opportunities found in %s", bundle_path.name)
    return report


def _clean_bundle_type(
    doc: ProfileDocument,
    bundle_name: str,
    profile_type: ProfileType,
    workspace: WorkspaceConfig,
    report: CleanReport,
) -> bool:
    bundle_profiles = doc.profiles(profile_type)
    if not bundle_profiles:
        return False

    profile_dir = workspace.profile_dir_for(profile_type)
    external = [
        p for p in load_corpus(profile_type, profile_dir, workspace.vendor_dir())
        if p.source_path != doc.path
    ]
    corpus = bundle_profiles + external
    changed = False

    for profile in bundle_profiles:
        count = clean_profile(profile, corpus)
        if count:
            changed = True
            report.properties_removed += count
            report.profiles_changed.append(profile.qualified_name)

    parent = doc.find(f"{profile_type.value}: {privatize(bundle_name)}")
    if parent is not None:
        hoisted = _hoist_into_parent(parent, corpus, report)
        if hoisted:
            changed = True

    names = [p.qualified_name for p in bundle_profiles]
    for path in list_profile_files(profile_dir):
        _clean_file(path, profile_type, corpus, report, only_children_of=names)
    return changed


def _hoist_into_parent(parent: Profile, corpus: list[Profile], report: CleanReport) -> dict[str, str]:
    """Move settings every child of ``parent`` agrees on into ``parent``.

    Children from outside the bundle count too; a key is only moved when
    all of them set it to the same value.
    """
    children = [c for c in direct_children(corpus, parent.qualified_name) if c is not parent]
    if len(children) < 2:
        return {}

    first, rest = children[0], children[1:]
    hoisted = {
        key: value for key, value in first.properties.items()
        if key not in CHILD_ONLY_PROPERTIES
        and all(child.properties.get(key) == value for child in rest)
    }
    if not hoisted:
        logger.info("No additional common properties among children of %s", parent.qualified_name)
        return {}

    parent.properties.update(hoisted)
    for child in children:
        if child.source_path != parent.source_path:
            continue
        for key in hoisted:
            if child.properties.pop(key, None) is not None:
                report.properties_removed += 1
        report.profiles_changed.append(child.qualified_name)

    report.properties_hoisted.update(hoisted)
    logger.info(
        "Moved %d common properties from %d children into %s",
        len(hoisted), len(children), parent.qualified_name,
    )
    return hoisted
