"""
profile_bundler CLI: combine, bundle, update and clean slicer INI profiles.

Usage:
    profile-bundler <command> [options]
    python -m profile_bundler <command> [options]
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from profile_bundler import (
    ProfileType,
    WorkspaceConfig,
    ancestor_chain,
    apply_updates,
    bundle_profiles,
    clean_bundle,
    clean_directory,
    clean_workspace,
    combine_profiles,
    descendants,
    extract_tags,
    filter_for,
    load_corpus,
    load_directory,
    parse_update_expression,
    select_profiles,
)

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="profile-bundler",
        description="Slicer profile inheritance and bundling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  profile-bundler show print --tag MK4
  profile-bundler combine print --layer-height 0.2 --into "0.20mm Base @MK4"
  profile-bundler bundle filament --vendor Acme --into AcmeBundle
  profile-bundler update print --nozzle 0.6 layer_height==+0.05 fill_density=20%
  profile-bundler clean all
  profile-bundler clean bundle AcmeBundle

Environment variables:
  PROFILE_BUNDLER_ROOT          Workspace root holding print/, filament/ and vendor/ (default: ".")
  PROFILE_BUNDLER_PROFILE_DIR   Profile directory (instead of <root>/<type>)
  PROFILE_BUNDLER_BUNDLE_DIR    Bundle directory (instead of <root>/vendor)
        """,
    )

    parser.add_argument(
        "--verbose", "-V", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true",
        help="Suppress non-error output (logging only)",
    )
    parser.add_argument(
        "--root", default=None,
        help="Workspace root (default: $PROFILE_BUNDLER_ROOT or '.')",
    )
    parser.add_argument(
        "--profile-dir", default=None,
        help="Profile directory (default: $PROFILE_BUNDLER_PROFILE_DIR or <root>/<type>)",
    )
    parser.add_argument(
        "--bundle-dir", default=None,
        help="Bundle directory (default: $PROFILE_BUNDLER_BUNDLE_DIR or <root>/vendor)",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
        metavar="<command>",
    )

    # --- show ---
    show_parser = subparsers.add_parser(
        "show",
        help="List matching profiles with their tags, parents and descendants",
    )
    _add_selection_args(show_parser)
    show_parser.set_defaults(func=run_show)

    # --- combine ---
    combine_parser = subparsers.add_parser(
        "combine",
        help="Combine matching profiles into a new parent profile",
    )
    _add_selection_args(combine_parser)
    combine_parser.add_argument(
        "--into", required=True, metavar="NAME",
        help="Name of the new parent profile (tags allowed)",
    )
    combine_parser.set_defaults(func=run_combine)

    # --- bundle ---
    bundle_parser = subparsers.add_parser(
        "bundle",
        help="Move parent profiles of the selection into a vendor bundle file",
    )
    _add_selection_args(bundle_parser)
    bundle_parser.add_argument(
        "--into", required=True, metavar="NAME",
        help="Bundle name (file <bundle-dir>/<NAME>.ini)",
    )
    bundle_parser.set_defaults(func=run_bundle)

    # --- update ---
    update_parser = subparsers.add_parser(
        "update",
        help="Update properties in matching profiles",
    )
    _add_selection_args(update_parser)
    update_parser.add_argument(
        "expressions", nargs="+", metavar="EXPR",
        help="property=value or property==+/-amount[%%|mm]",
    )
    update_parser.set_defaults(func=run_update)

    # --- clean ---
    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove properties whose value is already inherited",
    )
    clean_parser.add_argument(
        "target",
        nargs="?",
        default="all",
        choices=[pt.value for pt in ProfileType] + ["all", "bundle"],
        help="Profile type, 'all' (default) or 'bundle'",
    )
    clean_parser.add_argument(
        "bundle_name", nargs="?", default=None,
        help="Bundle to clean (with 'bundle')",
    )
    clean_parser.add_argument(
        "--json", action="store_true", help="Output report as JSON"
    )
    clean_parser.set_defaults(func=run_clean)

    return parser


def _add_selection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "profile_type",
        choices=[pt.value for pt in ProfileType],
        help="Profile type",
    )
    group = parser.add_argument_group("print filters")
    group.add_argument("--tag", "--sub-profile", dest="tag", help="Filter by tag (e.g. MK4)")
    group.add_argument("--layer-height", help="Filter by layer height (e.g. 0.2 or 0.2mm)")
    group.add_argument("--nozzle", help="Filter by nozzle diameter (e.g. 0.4 or 0.4mm)")
    group = parser.add_argument_group("filament filters")
    group.add_argument("--type", dest="filament_type", help="Filter by filament type (e.g. ASA)")
    group.add_argument("--vendor", help="Filter by filament vendor")
    parser.add_argument(
        "--json", action="store_true", help="Output report as JSON"
    )


def _default_root() -> str:
    """Return the default workspace root from env or fallback."""
    return os.environ.get("PROFILE_BUNDLER_ROOT", ".")


def _workspace(args: argparse.Namespace) -> WorkspaceConfig:
    """Build the workspace from CLI options, falling back to the environment."""
    profile_dir = args.profile_dir or os.environ.get("PROFILE_BUNDLER_PROFILE_DIR")
    bundle_dir = args.bundle_dir or os.environ.get("PROFILE_BUNDLER_BUNDLE_DIR")
    return WorkspaceConfig(
        root=Path(args.root or _default_root()),
        profile_dir=Path(profile_dir) if profile_dir else None,
        bundle_dir=Path(bundle_dir) if bundle_dir else None,
    )


def _make_reporter(use_json: bool):
    """Create the appropriate progress reporter."""
    from profile_bundler.progress import NullProgressReporter, RichProgressReporter
    return NullProgressReporter() if use_json else RichProgressReporter()


def _load_selection(args: argparse.Namespace, workspace: WorkspaceConfig):
    """Load the profiles matching the filter options; None if there are none."""
    profile_type = ProfileType(args.profile_type)
    profile_dir = workspace.profile_dir_for(profile_type)
    if not profile_dir.is_dir():
        logger.error("Directory '%s' does not exist", profile_dir)
        return None

    profiles = load_directory(profile_dir, profile_type)
    profile_filter = filter_for(
        profile_type,
        tag=args.tag,
        layer_height=args.layer_height,
        nozzle=args.nozzle,
        filament_type=args.filament_type,
        vendor=args.vendor,
    )
    selection = select_profiles(profiles, profile_filter)
    if not selection:
        logger.error("No profiles match the specified filters in '%s'", profile_dir)
        return None
    return selection


def _print_selection(selection) -> None:
    print(f"Matching {selection[0].profile_type.value} profiles:")
    for profile in selection:
        tags = extract_tags(profile.name)
        tag_str = f" (tags: {', '.join(tags)})" if tags else ""
        print(f"  {profile.source_path.name}: {profile.qualified_name}{tag_str}")


def _dump(report) -> None:
    print(json.dumps(report.model_dump(mode="json"), indent=2))


def run_show(args: argparse.Namespace) -> int:
    """Execute the show command: list the selection and its inheritance."""
    workspace = _workspace(args)
    selection = _load_selection(args, workspace)
    if selection is None:
        return 1

    profile_type = selection[0].profile_type
    corpus = load_corpus(profile_type, workspace.profile_dir_for(profile_type), workspace.vendor_dir())

    rows = []
    for profile in selection:
        chain = ancestor_chain(profile, corpus)
        rows.append({
            "file": profile.source_path.name,
            "name": profile.qualified_name,
            "tags": extract_tags(profile.name),
            "inherits": profile.inherits,
            "ancestors": [a.qualified_name for a in chain],
            "descendants": len(descendants(corpus, [profile.qualified_name])),
        })

    if args.json:
        print(json.dumps(rows, indent=2))
        return 0

    for row in rows:
        tag_str = f" (tags: {', '.join(row['tags'])})" if row["tags"] else ""
        print(f"{row['file']}: {row['name']}{tag_str}")
        if row["ancestors"]:
            print(f"  inherits: {' -> '.join(row['ancestors'])}")
        elif row["inherits"]:
            print(f"  inherits: {row['inherits']} (not found)")
        if row["descendants"]:
            print(f"  descendants: {row['descendants']}")
    print(f"\n{len(rows)} profile(s)")
    return 0


def run_combine(args: argparse.Namespace) -> int:
    """Execute the combine command: factor common settings into a new parent."""
    workspace = _workspace(args)
    selection = _load_selection(args, workspace)
    if selection is None:
        return 1
    if not args.json:
        _print_selection(selection)

    report = combine_profiles(selection, args.into)

    if args.json:
        _dump(report)
        return 0
    _make_reporter(args.json).summary("Combine complete", report.summary_rows())
    return 0


def run_bundle(args: argparse.Namespace) -> int:
    """Execute the bundle command: move internal profiles into a bundle."""
    workspace = _workspace(args)
    selection = _load_selection(args, workspace)
    if selection is None:
        return 1
    if not args.json:
        _print_selection(selection)

    reporter = _make_reporter(args.json)
    profile_type = ProfileType(args.profile_type)
    reporter.update_status(f"Bundling {len(selection)} profile(s) into {args.into}.ini")
    report = bundle_profiles(
        selection,
        args.into,
        workspace.vendor_dir(),
        workspace.profile_dir_for(profile_type),
        reporter=reporter,
    )

    if args.json:
        _dump(report)
        return 0

    if report.bundle_file is None:
        reporter.update_status("No parent profiles found in selection, nothing to move to bundle")
        return 0
    reporter.summary("Bundle complete", report.summary_rows())
    return 0


def run_update(args: argparse.Namespace) -> int:
    """Execute the update command: set or adjust properties."""
    workspace = _workspace(args)
    expressions = [parse_update_expression(e) for e in args.expressions]
    selection = _load_selection(args, workspace)
    if selection is None:
        return 1

    report = apply_updates(selection, expressions)

    if args.json:
        _dump(report)
        return 0

    _make_reporter(args.json).summary("Update complete", report.summary_rows())
    return 0


def run_clean(args: argparse.Namespace) -> int:
    """Execute the clean command: drop redundant inherited properties."""
    workspace = _workspace(args)

    if args.target == "bundle":
        if not args.bundle_name:
            logger.error("Bundle name is required for bundle cleaning")
            return 1
        report = clean_bundle(args.bundle_name, workspace)
    elif args.target == "all":
        report = clean_workspace(workspace)
    else:
        profile_type = ProfileType(args.target)
        profile_dir = workspace.profile_dir_for(profile_type)
        if not profile_dir.is_dir():
            logger.error("Directory '%s' does not exist", profile_dir)
            return 1
        report = clean_directory(profile_type, profile_dir, workspace.vendor_dir())

    if args.json:
        _dump(report)
        return 0

    _make_reporter(args.json).summary("Clean complete", report.summary_rows())
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging
    if getattr(args, "verbose", False):
        log_level = logging.DEBUG
    elif getattr(args, "quiet", False):
        log_level = logging.ERROR
    else:
        log_level = logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if hasattr(args, "func"):
        try:
            return args.func(args)
        except KeyboardInterrupt:
            logger.error("Interrupted")
            return 1
        except Exception as e:
            logger.error("%s", e)
            if getattr(args, "verbose", False):
                logger.debug("Traceback:", exc_info=True)
            return 1
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
