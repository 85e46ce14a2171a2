"""Shared fixtures: a throwaway workspace with print/, filament/ and vendor/ directories."""

from pathlib import Path

import pytest

from profile_bundler import WorkspaceConfig


@pytest.fixture
def workspace(tmp_path) -> WorkspaceConfig:
    """Empty workspace rooted at tmp_path."""
    for name in ("print", "filament", "vendor"):
        (tmp_path / name).mkdir()
    return WorkspaceConfig(root=tmp_path)


@pytest.fixture
def print_dir(workspace) -> Path:
    return workspace.root / "print"


@pytest.fixture
def filament_dir(workspace) -> Path:
    return workspace.root / "filament"


@pytest.fixture
def vendor_dir(workspace) -> Path:
    return workspace.root / "vendor"


@pytest.fixture
def make_profile():
    """Write a single-profile INI file and return its path."""

    def _make(
        directory: Path,
        filename: str,
        name: str,
        properties: dict[str, str],
        profile_type: str = "print",
    ) -> Path:
        lines = [f"[{profile_type}: {name}]"]
        lines.extend(f"{key} = {value}" for key, value in properties.items())
        path = directory / filename
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _make
