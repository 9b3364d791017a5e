"""
Toolbox dictionary parsing.

This module scans Toolbox files (line-tagged record-structured text) and
splits them into content objects, one per record label or unique record id.

Key Components:
- Scanner: single pass tokenizer reporting record boundaries
- Dictionary: loads a managed dictionary and dispatches to a splitter
- SplitResult: generated content objects plus sorted diagnostics

Example:
    from toolbox_core.parser import Dictionary

    dictionary = Dictionary.load(repo, config, strict=True)
    result = dictionary.split()
    for obj in result.objects:
        print(obj.path)
"""

from .base import SplitResult
from .dictionary import Dictionary
from .scanner import Scanner, Token, TokenKind, trim_trailing_empty_lines

__all__ = [
    "Dictionary",
    "Scanner",
    "SplitResult",
    "Token",
    "TokenKind",
    "trim_trailing_empty_lines",
]
