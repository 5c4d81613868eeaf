"""
Unit tests for tag normalization.
"""

import pytest

from ezd6_engine.rules import (
    DEFAULT_TAG_OPTIONS,
    get_tag_options,
    make_normalizer,
    normalize_keyword,
    normalize_optional_tag,
    normalize_tag,
)


class TestNormalizeTag:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("#karma", "#karma"),
            ("karma", "#karma"),
            ("  #Karma ", "#karma"),
            ("#heroDie", "#herodie"),
        ],
    )
    def test_normalizes(self, raw, expected):
        """Test trimming, lower-casing and the leading '#'."""
        assert normalize_tag(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_blank_is_task(self, raw):
        """Test blank tags fall back to #task."""
        assert normalize_tag(raw) == "#task"

    def test_integer_index_maps_to_option(self):
        """Test a bare integer picks a tag option."""
        assert normalize_tag("3") == "#brutal"
        assert normalize_tag(7) == "#karma"

    def test_out_of_range_index_is_kept(self):
        """Test an index past the options stays a tag."""
        assert normalize_tag("99") == "#99"

    def test_decimal_index_maps_to_option(self):
        """Test integral decimal numbers pick a tag option."""
        assert normalize_tag("2.0") == "#attack"
        assert normalize_tag("1e1") == "#herodie"

    @pytest.mark.parametrize("raw, expected", [("1_0", "#1_0"), ("0x3", "#0x3"), ("2.5", "#2.5")])
    def test_non_integer_numbers_are_tags(self, raw, expected):
        """Test non-integral or non-decimal numbers stay tags."""
        assert normalize_tag(raw) == expected

    def test_custom_options(self):
        """Test indices reach custom tags."""
        options = get_tag_options(["#sneak"])
        assert normalize_tag(str(len(DEFAULT_TAG_OPTIONS)), options) == "#sneak"


class TestTagOptions:
    def test_custom_tags_append_without_duplicates(self):
        """Test custom tags follow the defaults once each."""
        options = get_tag_options(["#karma", "#sneak", "#sneak"])
        assert options[: len(DEFAULT_TAG_OPTIONS)] == list(DEFAULT_TAG_OPTIONS)
        assert options.count("#sneak") == 1
        assert options.count("#karma") == 1

    def test_make_normalizer_binds_options(self):
        """Test a bound normalizer uses its tag list."""
        normalize = make_normalizer(["#sneak"])
        assert normalize(str(len(DEFAULT_TAG_OPTIONS))) == "#sneak"
        assert normalize("Sneak") == "#sneak"


class TestOptionalAndKeyword:
    def test_optional_blank_stays_blank(self):
        """Test an optional blank tag stays blank."""
        assert normalize_optional_tag("") == ""
        assert normalize_optional_tag(None) == ""

    def test_optional_normalizes(self):
        """Test an optional tag is normalized."""
        assert normalize_optional_tag(" Karma") == "#karma"

    @pytest.mark.parametrize(
        "raw, expected",
        [("#Brutal", "brutal"), ("magick", "magick"), ("", "default"), (None, "default"), ("#", "default")],
    )
    def test_normalize_keyword(self, raw, expected):
        """Test keyword keys drop the '#'."""
        assert normalize_keyword(raw) == expected
