"""
Bundle synthesis: move internal profiles of a selection into a vendor bundle.

Internal profiles (those another selected profile inherits from) are renamed
to their privatized ``*Name*`` form, re-parented under a synthesized
``*<bundle>*`` profile holding their shared settings, and appended to
``<bundle_dir>/<bundle>.ini``.  Every reference to a moved profile in the
profile directory is rewritten, and the originals are removed from their
files.  Leaves never move.

Running the same bundle twice is safe: profiles already present in the
bundle (by qualified name) are skipped.
"""

import logging
from pathlib import Path

from .classify import classify_profiles
from .codec import ProfileDocument, read_document, write_document
from .common import common_properties, shared_inherits
from .corpus import list_profile_files, load_corpus, selection_type
from .graph import descendants
from .models import BundleReport, Profile, ProfileType, VendorInfo
from .names import (
    OperationError,
    core_name,
    is_privatized,
    privatize,
    reference_matches,
    validate_target_name,
)
from .progress import NullProgressReporter, ProgressReporter
from .vendor import ensure_vendor_section

logger = logging.getLogger(__name__)

_STEPS = 5


class BundleSynthesizer:
    """
    Moves the internal profiles of one selection into a bundle file.

    Usage:
        synthesizer = BundleSynthesizer(Path("vendor"), Path("print"))
        report = synthesizer.bundle(selection, "MyBundle")
        if report.bundle_file is None:
            ...  # nothing to bundle
    """

    def __init__(
        self,
        bundle_dir: Path,
        profile_dir: Path | None = None,
        reporter: ProgressReporter | None = None,
    ):
        self.bundle_dir = bundle_dir
        self.profile_dir = profile_dir
        self.reporter: ProgressReporter = reporter or NullProgressReporter()

    def bundle(self, selection: list[Profile], bundle_name: str) -> BundleReport:
        """
        Bundle the internal profiles of ``selection`` under ``bundle_name``.

        Raises:
            OperationError: empty or unsafe bundle name, empty or mixed
                selection, or an existing bundle file that cannot be read.
        """
        bundle_name = validate_target_name(bundle_name)
        profile_type = selection_type(selection)
        profile_dir = self.profile_dir or self._selection_dir(selection)
        bundle_path = self.bundle_dir / f"{bundle_name}.ini"
        report = BundleReport(bundle_name=bundle_name)

        self.reporter.step("Loading profiles", 1, _STEPS)
        corpus = load_corpus(profile_type, profile_dir, self.bundle_dir)

        classification = classify_profiles(selection)
        report.leaves = [p.qualified_name for p in classification.leaves]
        internal = classification.internal
        if not internal:
            logger.info("No parent profiles in selection, nothing to bundle")
            return report

        report.descendants_found = len(
            descendants(corpus, [p.qualified_name for p in internal])
        )
        logger.info(
            "Bundling %d internal profile(s), %d leaf profile(s) stay in place",
            len(internal), len(classification.leaves),
        )

        renames = self._rename_map(internal, corpus, bundle_path)
        report.renamed = dict(renames)

        self.reporter.step("Building bundle parent", 2, _STEPS)
        doc = self._open_bundle(bundle_path, profile_type, bundle_name)
        parent, hoisted = self._bundle_parent(doc, profile_type, bundle_name, internal)
        report.parent_name = parent.qualified_name
        report.parent_created = doc.find(parent.qualified_name) is None
        report.common_properties = hoisted
        if report.parent_created:
            doc.append(parent)

        self.reporter.step("Writing bundle file", 3, _STEPS)
        self._warn_flattened(internal)
        for profile in internal:
            moved = self._privatized_copy(profile, hoisted, parent.name, renames, bundle_path)
            if doc.find(moved.qualified_name) is not None:
                logger.info("Skipping duplicate in bundle: %s", moved.qualified_name)
                report.skipped_duplicates.append(moved.qualified_name)
                continue
            doc.append(moved)
            report.moved.append(moved.qualified_name)
            logger.debug("Bundled %s (inherits from %s)", moved.qualified_name, parent.name)

        moved_names = {p.qualified_name for p in internal}
        for profile in doc.profiles(profile_type):
            if profile.qualified_name not in moved_names:
                self._rewrite_reference(profile, renames, corpus, moved_names)
        report.bundle_file = write_document(doc, bundle_path)

        self.reporter.step("Updating references", 4, _STEPS)
        self._update_sources(profile_dir, bundle_path, internal, renames, corpus, report)

        self.reporter.step("Done", 5, _STEPS)
        logger.info(
            "Bundle %s: %d moved, %d duplicate(s) skipped, %d file(s) updated, %d deleted",
            bundle_path.name, len(report.moved), len(report.skipped_duplicates),
            len(report.files_updated), len(report.files_deleted),
        )
        return report

    # --- Internal helpers ---

    @staticmethod
    def _selection_dir(selection: list[Profile]) -> Path:
        source = selection[0].source_path
        if source is None:
            raise OperationError(f"{selection[0].qualified_name} was not read from a file")
        return source.parent

    @staticmethod
    def _rename_map(
        internal: list[Profile], corpus: list[Profile], bundle_path: Path
    ) -> dict[str, str]:
        """Original display name -> privatized display name."""
        renames: dict[str, str] = {}
        existing = {p.qualified_name for p in corpus if p.source_path != bundle_path}
        for profile in internal:
            if is_privatized(profile.name):
                continue
            private = privatize(profile.name)
            renames[profile.name] = private
            qualified = f"{profile.profile_type.value}: {private}"
            if qualified in existing:
                logger.warning("%s already exists and will be shadowed by %s", qualified, profile.qualified_name)
            logger.debug("Will privatize: %s -> %s", profile.name, private)
        return renames

    @staticmethod
    def _open_bundle(path: Path, profile_type: ProfileType, bundle_name: str) -> ProfileDocument:
        if path.exists():
            doc = read_document(path, profile_type, default_name=bundle_name)
            if doc is None:
                raise OperationError(f"Bundle file exists but cannot be read: {path}")
            logger.info("Appending to existing bundle %s", path.name)
        else:
            doc = ProfileDocument(profile_type=profile_type, default_name=bundle_name, path=path)
            logger.info("Creating new bundle %s", path.name)
        # A freshly parsed empty file carries a placeholder default profile.
        doc.blocks = [
            b for b in doc.blocks
            if not (isinstance(b, Profile) and b.implicit and not b.properties)
        ]
        ensure_vendor_section(doc, VendorInfo(name=bundle_name))
        return doc

    @staticmethod
    def _bundle_parent(
        doc: ProfileDocument,
        profile_type: ProfileType,
        bundle_name: str,
        internal: list[Profile],
    ) -> tuple[Profile, dict[str, str]]:
        """The ``*<bundle>*`` parent and the properties hoisted into it.

        Settings are only hoisted when at least two profiles share them.  An
        existing parent is never modified; only keys it already holds with
        the same value are treated as hoisted.
        """
        hoisted = common_properties(internal) if len(internal) > 1 else {}
        agree, common_parent = shared_inherits(internal)

        name = privatize(bundle_name)
        existing = doc.find(f"{profile_type.value}: {name}")
        if existing is not None:
            logger.info("Bundle parent already exists: %s", existing.qualified_name)
            kept = {k: v for k, v in hoisted.items() if existing.properties.get(k) == v}
            return existing, kept

        properties = dict(hoisted)
        if agree and common_parent:
            properties["inherits"] = common_parent
        parent = Profile(profile_type=profile_type, name=name, properties=properties)
        logger.info("Created bundle parent %s with %d common properties", name, len(hoisted))
        return parent, hoisted

    @staticmethod
    def _warn_flattened(internal: list[Profile]) -> None:
        internal_names = {p.qualified_name for p in internal}
        for profile in internal:
            ref = profile.inherits
            if ref and any(reference_matches(ref, name) for name in internal_names):
                logger.warning(
                    "%s inherited from %s; it now inherits from the bundle parent instead",
                    profile.qualified_name, ref,
                )

    @staticmethod
    def _privatized_copy(
        profile: Profile,
        hoisted: dict[str, str],
        parent_name: str,
        renames: dict[str, str],
        bundle_path: Path,
    ) -> Profile:
        properties = {
            k: v for k, v in profile.properties.items()
            if k not in hoisted and k != "inherits"
        }
        properties["inherits"] = parent_name
        return profile.derive(
            name=renames.get(profile.name, profile.name),
            properties=properties,
            source_path=bundle_path,
            implicit=False,
        )

    @staticmethod
    def _rewrite_reference(
        profile: Profile,
        renames: dict[str, str],
        corpus: list[Profile],
        moved_names: set[str],
    ) -> bool:
        """Point ``profile.inherits`` at the privatized name of a moved profile."""
        ref = profile.inherits
        if ref is None:
            return False
        target = _resolve_rename(ref, profile.profile_type, renames, corpus, moved_names)
        if target is None or target == ref:
            return False
        profile.properties["inherits"] = target
        logger.debug("%s inherits: %s -> %s", profile.qualified_name, ref, target)
        return True

    def _update_sources(
        self,
        profile_dir: Path,
        bundle_path: Path,
        internal: list[Profile],
        renames: dict[str, str],
        corpus: list[Profile],
        report: BundleReport,
    ) -> None:
        """Rewrite references across the profile directory and drop moved originals."""
        profile_type = internal[0].profile_type
        moved_names = {p.qualified_name for p in internal}
        to_remove: dict[Path, set[str]] = {}
        for profile in internal:
            if profile.source_path is not None:
                to_remove.setdefault(profile.source_path.resolve(), set()).add(profile.qualified_name)

        paths = list_profile_files(profile_dir)
        listed = {p.resolve() for p in paths}
        paths.extend(sorted(p for p in to_remove if p not in listed))
        bundle_resolved = bundle_path.resolve()

        for path in paths:
            resolved = path.resolve()
            if resolved == bundle_resolved:
                continue
            doc = read_document(path, profile_type)
            if doc is None:
                continue

            removed = doc.remove(to_remove.get(resolved, ()))
            changed = bool(removed)
            for profile in doc.profiles():
                if self._rewrite_reference(profile, renames, corpus, moved_names):
                    changed = True
            if not changed:
                continue

            if removed and doc.is_empty():
                try:
                    path.unlink()
                except OSError as e:
                    logger.warning("Could not delete %s: %s", path, e)
                    continue
                report.files_deleted.append(path)
                logger.info("Deleted empty file %s", path.name)
                continue

            try:
                write_document(doc)
            except OSError as e:
                logger.warning("Could not write %s: %s", path, e)
                continue
            report.files_updated.append(path)
            if removed:
                logger.info("Removed %d profile(s) from %s", len(removed), path.name)


def _resolve_rename(
    ref: str,
    profile_type: ProfileType,
    renames: dict[str, str],
    corpus: list[Profile],
    moved_names: set[str],
) -> str | None:
    """Privatized name a reference should now use, or None if it is unaffected.

    Exact matches win over core-name matches.  A core-name match is ignored
    when the reference already resolves exactly to a profile that stays put.
    """
    prefix = profile_type.value
    for original, private in renames.items():
        if reference_matches(ref, f"{prefix}: {original}"):
            return private

    for p in corpus:
        if p.qualified_name not in moved_names and reference_matches(ref, p.qualified_name):
            return None

    ref_core = core_name(ref)
    for original, private in renames.items():
        if core_name(original) == ref_core:
            return private
    return None


def bundle_profiles(
    selection: list[Profile],
    bundle_name: str,
    bundle_dir: Path,
    profile_dir: Path | None = None,
    reporter: ProgressReporter | None = None,
) -> BundleReport:
    """Bundle the internal profiles of ``selection``; see ``BundleSynthesizer``."""
    return BundleSynthesizer(bundle_dir, profile_dir, reporter).bundle(selection, bundle_name)
