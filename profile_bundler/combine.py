"""
Combine a selection of profiles under a new parent profile.

The parent is written to its own file next to the first selected profile and
holds every property the selection agrees on.  Selected profiles keep their
names and files; they lose the hoisted properties and inherit from the new
parent instead.
"""

import logging

from .codec import ProfileDocument, read_document, write_document
from .common import common_properties, shared_inherits
from .corpus import group_by_file, selection_type
from .models import CombineReport, Profile
from .names import OperationError, filename_for, validate_target_name

logger = logging.getLogger(__name__)


def combine_profiles(selection: list[Profile], parent_name: str) -> CombineReport:
    """
    Create ``<parent_name>.ini`` from the selection's common properties.

    Args:
        selection: Profiles to combine (one profile type, all read from files).
        parent_name: Name of the new parent; tags are kept, unsafe
                     characters are rejected.

    Returns:
        CombineReport with the parent file and the files that were updated.
    """
    parent_name = validate_target_name(parent_name)
    profile_type = selection_type(selection)

    first_path = selection[0].source_path
    if first_path is None:
        raise OperationError(f"{selection[0].qualified_name} was not read from a file")

    stem = filename_for(parent_name)
    parent_path = first_path.parent / f"{stem}.ini"
    if parent_path.exists():
        raise OperationError(f"Parent profile file already exists: {parent_path}")

    common = common_properties(selection)
    agree, common_parent = shared_inherits(selection)

    report = CombineReport(
        parent_name=stem,
        common_properties=common,
        inherited_parent=common_parent,
    )

    parent_properties = dict(common)
    if common_parent:
        parent_properties["inherits"] = common_parent
    if not agree:
        report.flattened = True
        logger.warning(
            "Selected profiles inherit from different parents; "
            "their inheritance is replaced by %s", stem,
        )

    parent = Profile(
        profile_type=profile_type,
        name=stem,
        properties=parent_properties,
        source_path=parent_path,
    )
    # No default name: the parent always gets a header, even when empty.
    parent_doc = ProfileDocument(
        profile_type=profile_type, default_name="", path=parent_path, blocks=[parent]
    )
    report.parent_file = write_document(parent_doc)
    logger.info(
        "Created parent profile %s with %d common properties", parent_path.name, len(common)
    )

    for path, profiles in group_by_file(selection).items():
        doc = read_document(path, profile_type)
        if doc is None:
            continue
        selected = {p.qualified_name for p in profiles}
        for profile in doc.profiles():
            if profile.qualified_name not in selected:
                continue
            properties = {
                k: v for k, v in profile.properties.items()
                if k not in common and k != "inherits"
            }
            properties["inherits"] = stem
            profile.properties = properties
            report.profiles_combined.append(profile.qualified_name)
        write_document(doc)
        report.files_updated.append(path)
        logger.info("Updated profiles in %s", path.name)

    return report
