"""Tests for the stanza codec.

Tests cover:
- Parsing headers, properties and comments
- Headerless and empty files
- Foreign sections and preamble preservation
- Output conventions (sorted keys, privatized headers, blank-line separation)
- File I/O failure handling
"""

from profile_bundler import Profile, ProfileType, parse_document, parse_profiles, render_document
from profile_bundler.codec import (
    format_header,
    load_profiles,
    read_document,
    render_profiles,
    strip_comment,
    write_document,
)


# =============================================================================
# Parsing
# =============================================================================

class TestParse:
    """Tests for parse_profiles / parse_document."""

    def test_basic_profile(self):
        text = "[print: Basic Profile]\nlayer_height = 0.2\nfill_density = 20%\n"
        profiles = parse_profiles(text, ProfileType.PRINT, "basic")

        assert len(profiles) == 1
        profile = profiles[0]
        assert profile.name == "Basic Profile"
        assert profile.qualified_name == "print: Basic Profile"
        assert profile.properties == {"layer_height": "0.2", "fill_density": "20%"}

    def test_multiple_profiles_keep_file_order(self):
        text = "[print: B]\na = 1\n\n[print: A]\nb = 2\n"
        profiles = parse_profiles(text, ProfileType.PRINT, "x")
        assert [p.name for p in profiles] == ["B", "A"]

    def test_inline_comment_is_stripped(self):
        text = "[print: A]\nlayer_height = 0.2 # finer than default\n"
        profile = parse_profiles(text, ProfileType.PRINT, "x")[0]
        assert profile.properties["layer_height"] == "0.2"

    def test_value_starting_with_hash_is_kept(self):
        text = "[filament: Red]\nfilament_colour = #29B2B2\n"
        profile = parse_profiles(text, ProfileType.FILAMENT, "x")[0]
        assert profile.properties["filament_colour"] == "#29B2B2"

    def test_comment_lines_are_recorded(self):
        text = "[print: A]\n# tuned for PETG\na = 1\n"
        profile = parse_profiles(text, ProfileType.PRINT, "x")[0]
        assert profile.comments == ["# tuned for PETG"]

    def test_privatized_header(self):
        profile = parse_profiles("[print:*Parent*]\na = 1\n", ProfileType.PRINT, "x")[0]
        assert profile.name == "*Parent*"
        assert profile.is_privatized

    def test_inner_asterisk_is_not_privatized(self):
        profile = parse_profiles("[print: 0.20mm *Draft @MK4]\na = 1\n", ProfileType.PRINT, "x")[0]
        assert not profile.is_privatized

    def test_headerless_content_becomes_default_profile(self):
        profiles = parse_profiles("layer_height = 0.2\n", ProfileType.PRINT, "my_file")
        assert len(profiles) == 1
        assert profiles[0].name == "my_file"
        assert profiles[0].implicit
        assert profiles[0].properties == {"layer_height": "0.2"}

    def test_empty_file_yields_single_empty_default(self):
        profiles = parse_profiles("", ProfileType.PRINT, "empty")
        assert len(profiles) == 1
        assert profiles[0].name == "empty"
        assert profiles[0].properties == {}

    def test_other_profile_types_are_filtered(self):
        text = "[filament: F]\nx = 1\n\n[print: P]\ny = 2\n"
        assert [p.name for p in parse_profiles(text, ProfileType.PRINT, "x")] == ["P"]
        assert [p.name for p in parse_profiles(text, ProfileType.FILAMENT, "x")] == ["F"]

    def test_foreign_sections_are_kept(self):
        text = "[vendor]\nname = Acme\n\n[printer:MK4]\nbed_shape = 0x0\n\n[print: A]\na = 1\n"
        doc = parse_document(text, ProfileType.PRINT, "x")
        assert [s.header for s in doc.sections()] == ["vendor", "printer:MK4"]
        assert [p.name for p in doc.profiles()] == ["A"]


class TestStripComment:
    def test_full_line_comment(self):
        assert strip_comment("   # note") == ""

    def test_hash_inside_value(self):
        assert strip_comment("color = #FFF # white") == "color = #FFF"

    def test_six_digit_colour_kept(self):
        assert strip_comment("filament_colour = #29B2B2") == "filament_colour = #29B2B2"

    def test_empty_value_with_comment(self):
        assert strip_comment("start_filament_gcode = # none") == "start_filament_gcode ="

    def test_empty_value_parses_as_empty_string(self):
        profile = parse_profiles("[print: A]\nnotes = # unused\n", ProfileType.PRINT, "x")[0]
        assert profile.properties == {"notes": ""}


# =============================================================================
# Writing
# =============================================================================

class TestRender:
    """Tests for render_document and header formatting."""

    def test_properties_are_alphabetized(self):
        doc = parse_document("[print: A]\nzeta = 1\nalpha = 2\n", ProfileType.PRINT, "x")
        assert render_document(doc) == "[print: A]\nalpha = 2\nzeta = 1\n"

    def test_comments_survive_rewrite(self):
        doc = parse_document("[print: A]\n# keep me\nb = 2\na = 1\n", ProfileType.PRINT, "x")
        assert render_document(doc) == "[print: A]\n# keep me\na = 1\nb = 2\n"

    def test_profiles_separated_by_one_blank_line(self):
        text = "[print: A]\na = 1\n\n\n\n[print: B]\nb = 2\n"
        doc = parse_document(text, ProfileType.PRINT, "x")
        assert render_document(doc) == "[print: A]\na = 1\n\n[print: B]\nb = 2\n"

    def test_privatized_header_has_no_space(self):
        profile = Profile(profile_type=ProfileType.PRINT, name="*Parent*")
        assert format_header(profile) == "[print:*Parent*]"

    def test_public_header_keeps_space(self):
        profile = Profile(profile_type=ProfileType.FILAMENT, name="Generic PLA")
        assert format_header(profile) == "[filament: Generic PLA]"

    def test_empty_default_profile_renders_nothing(self):
        doc = parse_document("", ProfileType.PRINT, "empty")
        assert render_document(doc) == ""

    def test_foreign_section_and_preamble_round_trip(self):
        text = "# generated\n\n[vendor]\nname = Acme\n\n[print: A]\na = 1\n"
        doc = parse_document(text, ProfileType.PRINT, "x")
        assert render_document(doc) == text

    def test_round_trip_keeps_key_values(self):
        text = "[print: A]\nfill_density = 20%\nlayer_height = 0.2\n\n[print: B]\ninherits = A\n"
        first = parse_profiles(text, ProfileType.PRINT, "x")
        second = parse_profiles(render_profiles(first, "x"), ProfileType.PRINT, "x")
        assert [p.properties for p in second] == [p.properties for p in first]


# =============================================================================
# File I/O
# =============================================================================

class TestFileIO:
    def test_missing_file_reads_as_none(self, tmp_path):
        assert read_document(tmp_path / "missing.ini", ProfileType.PRINT) is None
        assert load_profiles(tmp_path / "missing.ini", ProfileType.PRINT) == []

    def test_default_name_is_file_stem(self, tmp_path):
        path = tmp_path / "speedy.ini"
        path.write_text("perimeters = 2\n", encoding="utf-8")
        assert load_profiles(path, ProfileType.PRINT)[0].name == "speedy"

    def test_write_document_replaces_content(self, tmp_path):
        path = tmp_path / "a.ini"
        path.write_text("[print: A]\nb = 2\na = 1\n", encoding="utf-8")
        doc = read_document(path, ProfileType.PRINT)
        doc.profiles()[0].properties["c"] = "3"
        write_document(doc)
        assert path.read_text(encoding="utf-8") == "[print: A]\na = 1\nb = 2\nc = 3\n"
