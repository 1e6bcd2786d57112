"""Multiple-choice option extraction from assistant questions.

The questionnaire asks its questions as free text with inline options,
e.g. ``"How do you start? A. Make a list B) Dive in C. Wait"``. This module
splits such text into the question stem and its lettered options.

Only the letters A, B and C are option markers. The questionnaire protocol
offers at most three choices, so a ``D.`` is ordinary label text and ends
up inside the C option.
"""

from __future__ import annotations

from dataclasses import dataclass, field

OPTION_KEYS = ("A", "B", "C")
MARKER_PUNCTUATION = ".)"
BULLET_CHARS = "-*"
EMPHASIS_CHARS = "_*"


@dataclass(frozen=True)
class MCQOption:
    """One selectable answer.

    Attributes:
        key: Option letter, one of A, B or C.
        label: Cleaned option text, sent as the answer when chosen.
    """

    key: str
    label: str


@dataclass(frozen=True)
class ParsedQuestion:
    """A question split into its stem and options (in order of appearance)."""

    stem: str
    options: list[MCQOption] = field(default_factory=list)


def is_marker(text: str, index: int) -> bool:
    """Whether an option marker such as ``A.`` or ``B)`` starts at ``index``.

    A marker is an option letter that does not continue a word, followed by
    ``.`` or ``)`` and then whitespace.
    """
    if index + 2 >= len(text):
        return False
    if text[index] not in OPTION_KEYS:
        return False
    if index > 0 and (text[index - 1].isalnum() or text[index - 1] == "_"):
        return False
    return text[index + 1] in MARKER_PUNCTUATION and text[index + 2].isspace()


def find_marker(text: str, start: int = 0) -> int:
    """Position of the first marker at or after ``start``, or -1."""
    for index in range(start, len(text)):
        if is_marker(text, index):
            return index
    return -1


def clean_label(label: str) -> str:
    """Strip bullets and basic markdown emphasis from an option label."""
    label = label.strip()
    if label[:1] in BULLET_CHARS and not label.startswith("**"):
        label = label[1:].lstrip()
    if len(label) >= 4 and label.startswith("**") and label.endswith("**"):
        label = label[2:-2]
    return label.strip(EMPHASIS_CHARS).strip()


def extract_options(raw: str) -> ParsedQuestion:
    """Split an assistant utterance into a stem and up to three lettered options.

    Never fails: text without markers yields the trimmed text as the stem
    and no options.
    """
    first = find_marker(raw)
    stem = raw[:first].strip() if first != -1 else raw.strip()

    options: list[MCQOption] = []
    position = find_marker(raw, max(first, 0))
    while position != -1:
        next_position = find_marker(raw, position + 2)
        end = next_position if next_position != -1 else len(raw)
        options.append(
            MCQOption(key=raw[position], label=clean_label(raw[position + 2 : end]))
        )
        position = next_position

    return ParsedQuestion(stem=stem, options=options)


__all__ = ["MCQOption", "ParsedQuestion", "clean_label", "extract_options", "find_marker"]
