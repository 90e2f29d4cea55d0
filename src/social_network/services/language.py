"""Placeholder script heuristic used for comment approval."""

import unicodedata


def contains_greek(text: str) -> bool:
    """Return True when any character belongs to the Greek script."""
    return any(unicodedata.name(char, "").startswith("GREEK") for char in text)


def matches_language(text: str, language: str) -> bool:
    """Guess whether text is written in the given language.

    Greek-script text counts as "gr", anything else as "en". This is not a
    language classifier.
    """
    if language == "gr":
        return contains_greek(text)
    return not contains_greek(text)
