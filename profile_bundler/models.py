from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ProfileType(str, Enum):
    FILAMENT = "filament"
    PRINT = "print"

    @property
    def prefix(self) -> str:
        """Stanza header prefix, e.g. ``"print:"``."""
        return f"{self.value}:"


class Profile(BaseModel):
    """
    One named settings block read from an INI file.

    ``name`` is the display name without the type prefix; it may carry
    ``@tag`` tokens and be wrapped in asterisks when privatized.
    """

    model_config = {"arbitrary_types_allowed": True}

    profile_type: ProfileType
    name: str
    properties: dict[str, str] = Field(default_factory=dict)
    comments: list[str] = Field(default_factory=list)
    raw_lines: list[str] = Field(default_factory=list)
    source_path: Path | None = None
    implicit: bool = False  # synthesized from headerless content

    @property
    def qualified_name(self) -> str:
        return f"{self.profile_type.value}: {self.name}"

    @property
    def inherits(self) -> str | None:
        value = self.properties.get("inherits")
        if value is None or not value.strip():
            return None
        return value

    @property
    def is_privatized(self) -> bool:
        from .names import is_privatized

        return is_privatized(self.name)

    def sorted_properties(self) -> dict[str, str]:
        return dict(sorted(self.properties.items()))

    def derive(self, **update) -> Profile:
        """Copy this profile, replacing the given fields.

        Mutable containers are copied so the new profile never shares
        state with the original.
        """
        data = {
            "profile_type": self.profile_type,
            "name": self.name,
            "properties": dict(self.properties),
            "comments": list(self.comments),
            "raw_lines": list(self.raw_lines),
            "source_path": self.source_path,
            "implicit": self.implicit,
        }
        data.update(update)
        return Profile(**data)


class VendorInfo(BaseModel):
    """Metadata of a bundle file's ``[vendor]`` stanza."""

    repo_id: str = "non-prusa-fff"
    name: str
    config_version: str = "2.1.0"


class WorkspaceConfig(BaseModel):
    """Directory layout the operations work against.

    Profiles of each type live in ``<root>/<type>`` unless ``profile_dir``
    overrides it; bundles live in ``<root>/vendor`` unless ``bundle_dir``
    overrides it.
    """

    model_config = {"arbitrary_types_allowed": True}

    root: Path
    profile_dir: Path | None = None
    bundle_dir: Path | None = None

    def profile_dir_for(self, profile_type: ProfileType) -> Path:
        if self.profile_dir is not None:
            return self.profile_dir
        return self.root / profile_type.value

    def vendor_dir(self) -> Path:
        if self.bundle_dir is not None:
            return self.bundle_dir
        return self.root / "vendor"


class CombineReport(BaseModel):
    """Result of combining profiles under a new parent."""

    model_config = {"arbitrary_types_allowed": True}

    parent_file: Path | None = None
    parent_name: str
    common_properties: dict[str, str] = Field(default_factory=dict)
    inherited_parent: str | None = None
    profiles_combined: list[str] = Field(default_factory=list)
    files_updated: list[Path] = Field(default_factory=list)
    flattened: bool = False

    def summary_rows(self) -> list[tuple[str, str]]:
        rows = [
            ("Parent file", self.parent_file.name if self.parent_file else "-"),
            ("Common properties", str(len(self.common_properties))),
        ]
        if self.inherited_parent:
            rows.append(("Inherits from", self.inherited_parent))
        if self.flattened:
            rows.append(("Inheritance", "flattened (selected profiles had different parents)"))
        rows.append(("Profiles updated", str(len(self.profiles_combined))))
        return rows


class BundleReport(BaseModel):
    """Result of moving internal profiles into a bundle file."""

    model_config = {"arbitrary_types_allowed": True}

    bundle_name: str
    bundle_file: Path | None = None  # None when there was nothing to bundle
    parent_name: str | None = None
    parent_created: bool = False
    common_properties: dict[str, str] = Field(default_factory=dict)
    moved: list[str] = Field(default_factory=list)
    leaves: list[str] = Field(default_factory=list)
    skipped_duplicates: list[str] = Field(default_factory=list)
    renamed: dict[str, str] = Field(default_factory=dict)
    descendants_found: int = 0
    files_updated: list[Path] = Field(default_factory=list)
    files_deleted: list[Path] = Field(default_factory=list)

    def summary_rows(self) -> list[tuple[str, str]]:
        rows = [
            ("Bundle file", str(self.bundle_file)),
            ("Parent", f"{self.parent_name} ({len(self.common_properties)} common properties)"),
            ("Moved", str(len(self.moved))),
            ("Left in place", str(len(self.leaves))),
        ]
        if self.skipped_duplicates:
            rows.append(("Already bundled", str(len(self.skipped_duplicates))))
        rows.append(("Descendants", str(self.descendants_found)))
        rows.append(("Files updated", str(len(self.files_updated))))
        if self.files_deleted:
            rows.append(("Files deleted", str(len(self.files_deleted))))
        return rows


class CleanReport(BaseModel):
    """Result of removing redundant inherited properties."""

    model_config = {"arbitrary_types_allowed": True}

    files_processed: int = 0
    files_changed: list[Path] = Field(default_factory=list)
    profiles_changed: list[str] = Field(default_factory=list)
    properties_removed: int = 0
    properties_hoisted: dict[str, str] = Field(default_factory=dict)

    def merge(self, other: CleanReport) -> None:
        self.files_processed += other.files_processed
        for path in other.files_changed:
            if path not in self.files_changed:
                self.files_changed.append(path)
        self.profiles_changed.extend(other.profiles_changed)
        self.properties_removed += other.properties_removed
        self.properties_hoisted.update(other.properties_hoisted)

    def summary_rows(self) -> list[tuple[str, str]]:
        rows = [
            ("Files processed", str(self.files_processed)),
            ("Files changed", str(len(self.files_changed))),
            ("Properties removed", str(self.properties_removed)),
        ]
        for key, value in sorted(self.properties_hoisted.items()):
            rows.append((f"Moved to parent: {key}", value))
        return rows


class UpdateReport(BaseModel):
    """Result of applying update expressions to a selection."""

    model_config = {"arbitrary_types_allowed": True}

    changes: dict[str, dict[str, tuple[str | None, str]]] = Field(default_factory=dict)
    skipped: list[str] = Field(default_factory=list)
    files_updated: list[Path] = Field(default_factory=list)

    def summary_rows(self) -> list[tuple[str, str]]:
        rows = [
            (f"{name}: {key}", f"{old or '(not set)'} -> {new}")
            for name, changes in self.changes.items()
            for key, (old, new) in changes.items()
        ]
        rows.extend((item, "skipped") for item in self.skipped)
        rows.append(("Files updated", str(len(self.files_updated))))
        return rows
