import pytest

from gridslicer.naming import (
    AlphabeticPattern,
    NumericPattern,
    PlainPattern,
    classify,
    increment_letter,
    sequence,
)


class TestClassify:
    @pytest.mark.parametrize(
        "base, expected",
        [
            ("Scan-A", AlphabeticPattern(prefix="Scan-", start_char="A")),
            ("Test_b", AlphabeticPattern(prefix="Test_", start_char="b")),
            ("3 Way - A", AlphabeticPattern(prefix="3 Way - ", start_char="A")),
            ("A", AlphabeticPattern(prefix="", start_char="A")),
            ("Scan-21", NumericPattern(prefix="Scan-", start=21)),
            ("img_007", NumericPattern(prefix="img_", start=7)),
            ("42", NumericPattern(prefix="", start=42)),
            ("Scan", PlainPattern(prefix="Scan")),
            ("Card A", AlphabeticPattern(prefix="Card ", start_char="A")),
            ("CardA", PlainPattern(prefix="CardA")),
        ],
    )
    def test_patterns(self, base, expected):
        assert classify(base) == expected

    def test_surrounding_whitespace_is_ignored(self):
        assert classify("  Scan-7  ") == NumericPattern(prefix="Scan-", start=7)


class TestIncrementLetter:
    def test_keeps_case(self):
        assert increment_letter("A", 2) == "C"
        assert increment_letter("x", 2) == "z"

    def test_past_end_of_alphabet(self):
        assert increment_letter("Z", 1) is None
        assert increment_letter("é", 0) is None


class TestSequence:
    def test_trailing_letter(self):
        assert sequence("Scan-A", 3) == ["Scan-A", "Scan-B", "Scan-C"]

    def test_letter_overflow_past_z(self):
        assert sequence("Scan-Y", 3) == ["Scan-Y", "Scan-Z", "Scan-Y1"]
        assert sequence("page-z", 3) == ["page-z", "page-z1", "page-z2"]

    def test_trailing_digits_without_padding(self):
        assert sequence("Scan-21", 3) == ["Scan-21", "Scan-22", "Scan-23"]
        assert sequence("img_09", 3) == ["img_9", "img_10", "img_11"]

    def test_fallback(self):
        assert sequence("Scan", 3) == ["Scan-1", "Scan-2", "Scan-3"]

    def test_spacing_before_letter_is_kept(self):
        assert sequence("3 Way - A", 2) == ["3 Way - A", "3 Way - B"]
        assert sequence("Card A", 3) == ["Card A", "Card B", "Card C"]

    def test_non_ascii_letter_uses_counter(self):
        assert sequence("Übung-é", 2) == ["Übung-é1", "Übung-é2"]

    def test_zero_count(self):
        assert sequence("Scan-A", 0) == []
