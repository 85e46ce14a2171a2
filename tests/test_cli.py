"""Smoke tests for the profile-bundler command line."""

import json

import pytest

from profile_bundler import ProfileType, load_profiles
from profile_bundler.__main__ import main


@pytest.fixture
def corpus(print_dir, make_profile):
    make_profile(print_dir, "parent.ini", "Parent @MK4", {"layer_height": "0.2", "perimeters": "2"})
    make_profile(print_dir, "child.ini", "Child @MK4", {"inherits": "Parent @MK4", "perimeters": "2"})
    make_profile(print_dir, "other.ini", "Other @MK3", {"layer_height": "0.3"})
    return print_dir


class TestShow:
    def test_lists_matching_profiles(self, workspace, corpus, capsys):
        assert main(["--root", str(workspace.root), "show", "print", "--tag", "MK4"]) == 0
        out = capsys.readouterr().out
        assert "print: Parent @MK4" in out
        assert "print: Child @MK4" in out
        assert "Other" not in out

    def test_json_output(self, workspace, corpus, capsys):
        assert main(["--root", str(workspace.root), "show", "print", "--json"]) == 0
        rows = {row["name"]: row for row in json.loads(capsys.readouterr().out)}
        assert rows["print: Child @MK4"]["ancestors"] == ["print: Parent @MK4"]
        assert rows["print: Parent @MK4"]["descendants"] == 1
        assert rows["print: Other @MK3"]["tags"] == ["MK3"]

    def test_no_matches(self, workspace, corpus):
        assert main(["--root", str(workspace.root), "show", "print", "--tag", "XL"]) == 1

    def test_root_from_environment(self, workspace, corpus, capsys, monkeypatch):
        monkeypatch.setenv("PROFILE_BUNDLER_ROOT", str(workspace.root))
        assert main(["show", "print", "--layer-height", "0.3"]) == 0
        assert "Other @MK3" in capsys.readouterr().out


class TestCommands:
    def test_bundle(self, workspace, corpus, capsys):
        argv = ["--root", str(workspace.root), "bundle", "print", "--tag", "MK4", "--into", "MK4", "--json"]
        assert main(argv) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["moved"] == ["print: *Parent @MK4*"]
        assert (workspace.root / "vendor" / "MK4.ini").exists()

    def test_bundle_unsafe_name_fails(self, workspace, corpus):
        argv = ["--root", str(workspace.root), "bundle", "print", "--into", "bad/name"]
        assert main(argv) == 1

    def test_combine_requires_into(self, workspace, corpus):
        with pytest.raises(SystemExit):
            main(["--root", str(workspace.root), "combine", "print"])

    def test_combine(self, workspace, corpus, capsys):
        argv = ["--root", str(workspace.root), "combine", "print", "--tag", "MK4", "--into", "Base @MK4", "--json"]
        assert main(argv) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["common_properties"] == {"perimeters": "2"}
        assert (corpus / "Base @MK4.ini").exists()

    def test_update(self, workspace, corpus, capsys):
        argv = ["--root", str(workspace.root), "update", "print", "--tag", "MK3", "layer_height==+0.05"]
        assert main(argv) == 0
        profile = load_profiles(corpus / "other.ini", ProfileType.PRINT)[0]
        assert profile.properties["layer_height"] == "0.35"

    def test_update_bad_expression(self, workspace, corpus):
        assert main(["--root", str(workspace.root), "update", "print", "nonsense"]) == 1

    def test_clean_print(self, workspace, corpus, capsys):
        assert main(["--root", str(workspace.root), "clean", "print", "--json"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["properties_removed"] == 1
        child = load_profiles(corpus / "child.ini", ProfileType.PRINT)[0]
        assert "perimeters" not in child.properties

    def test_clean_prints_summary(self, workspace, corpus, capsys):
        assert main(["--root", str(workspace.root), "clean", "print"]) == 0
        out = capsys.readouterr().out
        assert "Clean complete" in out
        assert "Properties removed" in out

    def test_clean_bundle_requires_name(self, workspace, corpus):
        assert main(["--root", str(workspace.root), "clean", "bundle"]) == 1

    def test_clean_missing_bundle(self, workspace, corpus):
        assert main(["--root", str(workspace.root), "clean", "bundle", "Nope"]) == 1
