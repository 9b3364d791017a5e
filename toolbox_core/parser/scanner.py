"""
Line scanner for Toolbox files.

A Toolbox file is a sequence of lines; a line starting with a backslash
carries a tag ("\\lx", "\\ge" ...) followed by its value. Records begin at
every occurrence of the record tag. The scanner turns the text into a stream
of (Line, Token) pairs and reports record boundaries, handing out the exact
source text of each finished record.
"""

import logging
import re
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Iterator, Optional, Tuple

from ..models.issues import Line

logger = logging.getLogger(__name__)


MARKER = "\\"

DICTIONARY_HEADER_RE = re.compile(r'\\_sh\s+v3\.0\s+[0-9]+\s+Dictionary\s*')

_TAGGED_RE = re.compile(r'(\\\S*)(.*)', re.DOTALL)


class TokenKind(Enum):
    RECORD_BEGIN = "record_begin"
    RECORD_END = "record_end"
    TAGGED = "tagged"
    UNTAGGED = "untagged"
    BLANK = "blank"


@dataclass(frozen=True)
class Token:
    """
    A scanner token.

    For TAGGED tokens `tag` holds the marker (backslash included) and `text`
    the value with its leading whitespace. UNTAGGED tokens carry the line text
    and RECORD_END tokens the record body.
    """
    kind: TokenKind
    tag: str = ""
    text: str = ""

    def is_tag(self, marker: str) -> bool:
        return self.kind is TokenKind.TAGGED and self.tag == marker


RECORD_BEGIN = Token(TokenKind.RECORD_BEGIN)
BLANK = Token(TokenKind.BLANK)


@dataclass(frozen=True)
class MissingHeader:
    """Result of a failed header check: the offending (or last) line"""
    line_number: int


def parse_line(text: str) -> Token:
    """Classify a single line (without its terminator)"""
    if text.startswith(MARKER):
        tag, value = _TAGGED_RE.match(text).groups()
        return Token(TokenKind.TAGGED, tag=tag, text=value)
    if not text.strip():
        return BLANK
    return Token(TokenKind.UNTAGGED, text=text)


def iter_lines(text: str) -> Iterator[Tuple[int, int, int, str]]:
    """
    Iterate over the lines of `text`.

    Yields (number, start, stop, line) where text[start:stop] is the line
    including its terminator and `line` is the text without it.
    """
    start = 0
    number = 0
    length = len(text)
    while start < length:
        end = text.find('\n', start)
        stop = length if end == -1 else end + 1
        yield number, start, stop, text[start:stop].rstrip('\r\n')
        number += 1
        start = stop


def trim_trailing_empty_lines(text: str) -> str:
    """
    Remove blank lines from the end of text.

    The terminator of the last non-blank line is kept:
    "a\\n\\n" -> "a\\n", "a\\r\\n\\r\\n" -> "a\\r\\n".
    """
    end = 0
    for _, _, stop, line in iter_lines(text):
        if line.strip():
            end = stop
    return text[:end]


class Scanner:
    """
    Single pass tokenizer over a Toolbox text.

    Iterating yields (Line, Token) pairs. A line holding the record tag
    produces up to three tokens: RECORD_END for the record it closes,
    RECORD_BEGIN and the TAGGED token itself. When the input is exhausted an
    open record is closed by a final RECORD_END.
    """

    def __init__(self, text: str, record_marker: str):
        self.text = text
        self.record_marker = record_marker

        self._lines = iter_lines(text)
        self._queue: Deque[Tuple[Line, Token]] = deque(maxlen=3)
        self._record_start: Optional[int] = None
        self._last_line: Optional[Line] = None

    def __iter__(self) -> 'Scanner':
        return self

    def __next__(self) -> Tuple[Line, Token]:
        if self._queue:
            return self._queue.popleft()

        try:
            number, start, _, text = next(self._lines)
        except StopIteration:
            if self._record_start is None:
                raise
            body = trim_trailing_empty_lines(self.text[self._record_start:])
            self._record_start = None
            return self._last_line, Token(TokenKind.RECORD_END, text=body)

        line = Line(number, text)
        self._last_line = line
        token = parse_line(text)

        if not token.is_tag(self.record_marker):
            return line, token

        if self._record_start is not None:
            body = trim_trailing_empty_lines(self.text[self._record_start:start])
            self._queue.append((line, Token(TokenKind.RECORD_END, text=body)))
        self._record_start = start
        self._queue.append((line, RECORD_BEGIN))
        self._queue.append((line, token))

        return self._queue.popleft()

    def expect_dictionary_header(self) -> Optional[MissingHeader]:
        """
        Consume the Toolbox dictionary header.

        Blank lines are skipped. Returns None if the next line is a valid
        header, otherwise the number of the offending line (or of the last
        line when the input ends first).
        """
        last_line = self._last_line
        for line, token in self:
            last_line = line
            if token.kind is TokenKind.BLANK:
                continue
            if DICTIONARY_HEADER_RE.fullmatch(line.text):
                return None
            logger.debug(f"Invalid dictionary header at line {line.display_number}: {line.text!r}")
            return MissingHeader(line.number)

        return MissingHeader(last_line.number if last_line else 0)
