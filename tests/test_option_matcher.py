"""
Tests for dropdown option matching.

Matching contract:
- case-insensitive substring match on the visible label
- first match in list order wins
- exact (whitespace-collapsed) equality only as a second pass
"""

from core.models import OptionDescriptor
from executors.option_matcher import label_matches, match_option


def _options(*labels):
    return [OptionDescriptor(str(i), label) for i, label in enumerate(labels)]


class TestMatchOption:
    def test_substring_match_is_case_insensitive(self):
        options = _options("Eastern", "Southern - HYDERABAD")
        match = match_option(options, "HYDERABAD")
        assert match == options[1]

    def test_desired_text_is_trimmed_and_lowered(self):
        options = _options("--Select--", "Southern Region")
        assert match_option(options, "  southern ") == options[1]

    def test_first_of_several_matches_wins(self):
        options = _options("Advanced (ICITSS) MCS - Batch 1", "Advanced (ICITSS) MCS - Batch 2")
        assert match_option(options, "advanced (icitss) mcs") == options[0]

    def test_repeated_calls_return_same_entry(self):
        options = _options("Southern A", "Southern B", "Western")
        results = {match_option(options, "southern") for _ in range(5)}
        assert results == {options[0]}

    def test_exact_pass_collapses_whitespace(self):
        options = _options("Eastern", "Southern    Region")
        # "southern region" is not a substring of "southern    region"
        assert match_option(options, "Southern Region") == options[1]

    def test_no_match_returns_none(self):
        assert match_option(_options("Eastern", "Western"), "Northern") is None

    def test_empty_desired_label_matches_nothing(self):
        assert match_option(_options("Eastern"), "   ") is None

    def test_empty_option_list(self):
        assert match_option([], "Southern") is None


def test_label_matches_single_label():
    assert label_matches("Southern Region", "southern")
    assert not label_matches(None, "southern")
    assert not label_matches("Eastern", "southern")
