"""
profile_bundler: Slicer Profile Inheritance & Bundling Engine

Reads PrusaSlicer-style ``[print: ...]`` / ``[filament: ...]`` INI profiles,
resolves their ``inherits`` chains across files, and restructures them:
combining common settings into new parents, moving parent profiles into
vendor bundles, and removing settings that are already inherited.
"""

from .models import (
    ProfileType,
    Profile,
    VendorInfo,
    WorkspaceConfig,
    CombineReport,
    BundleReport,
    CleanReport,
    UpdateReport,
)
from .codec import (
    ForeignSection,
    ProfileDocument,
    parse_document,
    parse_profiles,
    render_document,
    read_document,
    write_document,
    load_profiles,
    write_profiles,
)
from .names import (
    OperationError,
    normalize_name,
    core_name,
    extract_tags,
    core_name_equals,
    inherits_from,
    reference_matches,
    privatize,
    is_privatized,
    unsafe_filesystem_chars,
    sanitize_filename,
)
from .graph import direct_children, descendants, find_parent, ancestor_chain
from .common import CHILD_ONLY_PROPERTIES, common_properties
from .classify import Classification, classify_profiles
from .corpus import load_directory, load_corpus, select_profiles
from .filters import ProfileFilter, PrintFilter, FilamentFilter, filter_for
from .values import (
    ValueParseError,
    UnitMismatchError,
    Unit,
    Measurement,
    RelativeAdjustment,
    parse_measurement,
    parse_adjustment,
    adjust_value,
)
from .vendor import read_vendor_info, bundle_profile_types
from .combine import combine_profiles
from .bundle import BundleSynthesizer, bundle_profiles
from .clean import (
    inherited_closure,
    clean_profile,
    clean_directory,
    clean_workspace,
    clean_bundle,
)
from .update import UpdateExpression, parse_update_expression, apply_updates

__all__ = [
    # Enums
    "ProfileType",
    "Unit",
    # Models
    "Profile",
    "VendorInfo",
    "WorkspaceConfig",
    "CombineReport",
    "BundleReport",
    "CleanReport",
    "UpdateReport",
    # Codec
    "ForeignSection",
    "ProfileDocument",
    "parse_document",
    "parse_profiles",
    "render_document",
    "read_document",
    "write_document",
    "load_profiles",
    "write_profiles",
    "read_vendor_info",
    "bundle_profile_types",
    # Names & Inheritance
    "normalize_name",
    "core_name",
    "extract_tags",
    "core_name_equals",
    "inherits_from",
    "reference_matches",
    "privatize",
    "is_privatized",
    "unsafe_filesystem_chars",
    "sanitize_filename",
    "direct_children",
    "descendants",
    "find_parent",
    "ancestor_chain",
    "CHILD_ONLY_PROPERTIES",
    "common_properties",
    "Classification",
    "classify_profiles",
    # Selection
    "load_directory",
    "load_corpus",
    "select_profiles",
    "ProfileFilter",
    "PrintFilter",
    "FilamentFilter",
    "filter_for",
    # Values & Updates
    "Measurement",
    "RelativeAdjustment",
    "parse_measurement",
    "parse_adjustment",
    "adjust_value",
    "UpdateExpression",
    "parse_update_expression",
    "apply_updates",
    # Operations
    "combine_profiles",
    "BundleSynthesizer",
    "bundle_profiles",
    "inherited_closure",
    "clean_profile",
    "clean_directory",
    "clean_workspace",
    "clean_bundle",
    # Exceptions
    "OperationError",
    "ValueParseError",
    "UnitMismatchError",
]
