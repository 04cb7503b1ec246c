"""
Unit tests for key and path normalization.
"""

from catalog_manager.services.keys import (
    canonicalize_key,
    leaf_segment,
    normalize_header,
    normalize_text,
    resolve_parent_key,
    sanitize_file_name,
    slugify,
)


class TestCanonicalizeKey:

    def test_backslashes_become_dashes_and_case_is_lowered(self):
        assert canonicalize_key("F50\\Engine\\Honda GX100") == "f50-engine-honda gx100"

    def test_is_idempotent(self):
        key = canonicalize_key(" F50\\Engine ")
        assert canonicalize_key(key) == key == "f50-engine"

    def test_none_degrades_to_empty(self):
        assert canonicalize_key(None) == ""
        assert normalize_text(None) == ""


class TestResolveParentKey:

    def test_parent_of_nested_path(self):
        assert resolve_parent_key("F50\\Engine\\Honda GX100") == "f50-engine"

    def test_single_segment_is_root(self):
        assert resolve_parent_key("F50") == ""

    def test_empty_segments_are_ignored(self):
        assert resolve_parent_key("\\F50\\\\Engine\\") == "f50"

    def test_leaf_segment(self):
        assert leaf_segment("F50\\Engine\\") == "Engine"
        assert leaf_segment("") == ""


class TestFileNames:

    def test_swedish_letters_and_spaces(self):
        assert sanitize_file_name("Öljefilter Gräs%20Kit") == "oljefilter_gras_kit"

    def test_mojibake_variants_are_folded(self):
        assert sanitize_file_name("GrÃ¤s") == "gras"

    def test_comma_marker_and_double_dash(self):
        assert sanitize_file_name("A--B[comma]C") == "a-bc"

    def test_slugify(self):
        assert slugify("Lawn Mowers  2020") == "lawn-mowers-2020"

    def test_normalize_header(self):
        assert normalize_header(" Name SV ") == "name_sv"
        assert normalize_header("Färg") == "farg"
