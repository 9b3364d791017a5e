"""
Deterministic path sharding.

Spreads content objects over a two-level directory tree derived from the
first letters of their names. Unlike a hash based layout, the directory
names stay readable so users can navigate to a record by hand.
"""

import re
import unicodedata
from typing import Iterator

from unidecode import unidecode


PREFIX_LENGTH = 4
PAD_CHAR = '_'

_UNDERSCORE_RUN = re.compile(r'_+')


def _alphanumeric(name: str) -> Iterator[str]:
    # canonical decomposition separates combining marks from their base letters
    for c in unicodedata.normalize('NFD', name):
        if c.isalnum():
            yield c


def build_path_prefix(name: str) -> str:
    """
    Build a nested path prefix for a name.

    Takes the first four alphanumeric code points of the decomposed name,
    pads with '_' when the name is too short and splits the result in two
    directory levels.

    Example:
        build_path_prefix("Ölfeld") -> "Ol/fe"
        build_path_prefix("ab") -> "ab/__"
    """
    prefix = ''.join(_alphanumeric(name))[:PREFIX_LENGTH].ljust(PREFIX_LENGTH, PAD_CHAR)
    return f"{prefix[:2]}/{prefix[2:]}"


def transliterate(text: str) -> str:
    """Transliterate text to ASCII, using '_' for characters with no known transcription"""
    return unidecode(text, errors='replace', replace_str=PAD_CHAR)


def sanitize_label(label: str) -> str:
    """
    Turn a record label into a cross-platform file name.

    The label is transliterated to ASCII and lower-cased; every other
    character becomes '_' and runs of '_' are collapsed. Distinct labels may
    sanitize to the same name, in which case their records share a file.
    """
    sanitized = ''.join(
        c.lower() if c.isascii() and c.isalnum() else PAD_CHAR
        for c in transliterate(label)
    )
    return _UNDERSCORE_RUN.sub(PAD_CHAR, sanitized)
