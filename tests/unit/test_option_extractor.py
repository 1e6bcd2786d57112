"""Unit tests for lettered option extraction.

Tests that assistant questions split into a stem and up to three
A/B/C options, with labels cleaned of bullets and emphasis.
"""

import pytest


class TestExtractOptions:
    """Tests for extract_options()."""

    def test_basic_question(self):
        from src.calibration.options import MCQOption, extract_options

        parsed = extract_options("What is 2+2? A. Three B. Four C. Five")
        assert parsed.stem == "What is 2+2?"
        assert parsed.options == [
            MCQOption(key="A", label="Three"),
            MCQOption(key="B", label="Four"),
            MCQOption(key="C", label="Five"),
        ]

    def test_no_markers(self):
        from src.calibration.options import extract_options

        parsed = extract_options("  Just think about it.  ")
        assert parsed.stem == "Just think about it."
        assert parsed.options == []

    def test_empty_text(self):
        from src.calibration.options import extract_options

        parsed = extract_options("")
        assert parsed.stem == ""
        assert parsed.options == []

    def test_parenthesis_markers_and_newlines(self):
        from src.calibration.options import extract_options

        parsed = extract_options("How do you start?\nA) Make a list\nB) Dive in\nC) Wait a bit")
        assert parsed.stem == "How do you start?"
        assert [(o.key, o.label) for o in parsed.options] == [
            ("A", "Make a list"),
            ("B", "Dive in"),
            ("C", "Wait a bit"),
        ]

    def test_fourth_option_absorbed_into_third(self):
        """Only A-C are markers; a D. option stays inside the C label."""
        from src.calibration.options import extract_options

        parsed = extract_options("Pick one: A. Red B. Green C. Blue D. Yellow")
        assert len(parsed.options) == 3
        assert parsed.options[2].label == "Blue D. Yellow"

    def test_marker_inside_word_ignored(self):
        from src.calibration.options import extract_options

        parsed = extract_options("See USA. Then choose A. Yes B. No")
        assert parsed.stem == "See USA. Then choose"
        assert [o.label for o in parsed.options] == ["Yes", "No"]

    def test_marker_needs_trailing_whitespace(self):
        from src.calibration.options import extract_options

        parsed = extract_options("Version A.1 or B.2?")
        assert parsed.options == []

    def test_marker_at_start_gives_empty_stem(self):
        from src.calibration.options import extract_options

        parsed = extract_options("A. Morning B. Evening")
        assert parsed.stem == ""
        assert [o.key for o in parsed.options] == ["A", "B"]

    def test_options_in_order_of_appearance(self):
        from src.calibration.options import extract_options

        parsed = extract_options("Q? B. second A. first")
        assert [o.key for o in parsed.options] == ["B", "A"]

    def test_marker_at_end_of_text_ignored(self):
        from src.calibration.options import extract_options

        parsed = extract_options("Grade A.")
        assert parsed.stem == "Grade A."
        assert parsed.options == []

    def test_deterministic(self):
        from src.calibration.options import extract_options

        text = "Q? A. **One** B. - Two C. _Three_"
        assert extract_options(text) == extract_options(text)


class TestCleanLabel:
    """Tests for clean_label()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("  Plain  ", "Plain"),
            ("- Bulleted", "Bulleted"),
            ("* Starred bullet", "Starred bullet"),
            ("**Bold label**", "Bold label"),
            ("- **Bold bullet**", "Bold bullet"),
            ("_emphasis_", "emphasis"),
            ("*single*", "single"),
            ("", ""),
        ],
    )
    def test_cleaning(self, raw, expected):
        from src.calibration.options import clean_label

        assert clean_label(raw) == expected

    def test_labels_cleaned_during_extraction(self):
        from src.calibration.options import extract_options

        parsed = extract_options("Which?\nA. **Lists**\nB. - Timers\nC. _Nothing_")
        assert [o.label for o in parsed.options] == ["Lists", "Timers", "Nothing"]
