"""
Filename sequencing from a base name.

A base name is classified by its trailing characters and then expanded
into a sequence:

- ``"Scan-A"`` -> ``Scan-A, Scan-B, Scan-C`` (trailing letter)
- ``"Scan-21"`` -> ``Scan-21, Scan-22, Scan-23`` (trailing digits)
- ``"Scan"`` -> ``Scan-1, Scan-2, Scan-3`` (anything else)
"""

import string
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class AlphabeticPattern:
    """Base name ending in a single letter used as a counter."""

    prefix: str
    start_char: str


@dataclass(frozen=True)
class NumericPattern:
    """Base name ending in a run of digits."""

    prefix: str
    start: int


@dataclass(frozen=True)
class PlainPattern:
    """Base name without a recognised counter."""

    prefix: str


FilenamePattern = Union[AlphabeticPattern, NumericPattern, PlainPattern]


def increment_letter(char: str, amount: int) -> Optional[str]:
    """
    Advance an ASCII letter within its case.

    Returns:
        The advanced letter, or None when it would leave A-Z / a-z or the
        input is not an ASCII letter.
    """
    if char in string.ascii_uppercase:
        alphabet = string.ascii_uppercase
    elif char in string.ascii_lowercase:
        alphabet = string.ascii_lowercase
    else:
        return None

    offset = alphabet.index(char) + amount
    if not 0 <= offset < len(alphabet):
        return None
    return alphabet[offset]


def classify(base: str) -> FilenamePattern:
    """
    Classify a base name.

    The trailing-letter rule is tried first: the last character is a letter
    and the character right before it is not a letter (a space counts), or
    there is nothing before it. Spacing between prefix and letter is kept,
    so ``"Page - A"`` has prefix ``"Page - "`` and ``"Card A"`` has ``"Card "``.

    Args:
        base: Base filename, surrounding whitespace is ignored.

    Returns:
        The matching pattern variant.
    """
    trimmed = base.strip()

    if trimmed and trimmed[-1].isalpha():
        without_last = trimmed[:-1]
        if not without_last or not without_last[-1].isalpha():
            return AlphabeticPattern(prefix=without_last, start_char=trimmed[-1])

    digits = len(trimmed) - len(trimmed.rstrip(string.digits))
    if digits:
        return NumericPattern(
            prefix=trimmed[:-digits],
            start=int(trimmed[-digits:]),
        )

    return PlainPattern(prefix=trimmed)


def _letters_after(char: str) -> int:
    """How many times an ASCII letter can advance before leaving its case; -1 otherwise."""
    for alphabet in (string.ascii_uppercase, string.ascii_lowercase):
        if char in alphabet:
            return len(alphabet) - 1 - alphabet.index(char)
    return -1


def render(pattern: FilenamePattern, index: int) -> str:
    """
    Render the name of item ``index`` (0-based) of a pattern.

    Letters that run past 'Z' / 'z' fall back to the original letter
    followed by a counter of the items that overflowed: ``Scan-Y`` gives
    ``Scan-Y, Scan-Z, Scan-Y1, Scan-Y2``.
    """
    if isinstance(pattern, AlphabeticPattern):
        letter = increment_letter(pattern.start_char, index)
        if letter is None:
            overflow = index - _letters_after(pattern.start_char)
            return f"{pattern.prefix}{pattern.start_char}{overflow}"
        return f"{pattern.prefix}{letter}"

    if isinstance(pattern, NumericPattern):
        return f"{pattern.prefix}{pattern.start + index}"

    return f"{pattern.prefix}-{index + 1}"


def sequence(base: str, count: int) -> list[str]:
    """
    Generate ``count`` filenames from a base name.

    Args:
        base: Base filename.
        count: Number of names to generate.

    Returns:
        Names in order; no extension is added.
    """
    pattern = classify(base)
    return [render(pattern, index) for index in range(count)]
