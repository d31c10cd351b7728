"""Filename sequencing for exported regions."""

from .sequencer import (
    AlphabeticPattern,
    FilenamePattern,
    NumericPattern,
    PlainPattern,
    classify,
    increment_letter,
    render,
    sequence,
)

__all__ = [
    "AlphabeticPattern",
    "FilenamePattern",
    "NumericPattern",
    "PlainPattern",
    "classify",
    "increment_letter",
    "render",
    "sequence",
]
