"""
Common data structures for dictionary splitters.

Defines the split result shared by the label and unique id splitters, along
with the handling of content found before the first record.
"""

from dataclasses import dataclass, field
from typing import Iterator, List

from ..models.content import ContentObject
from ..models.issues import IssueKind, ToolboxFileIssue
from .scanner import Scanner, TokenKind


ORPHANS_PATH = "invalid/__.txt"
LABEL_MISSING_PATH = "invalid/label_missing.txt"
ID_MISSING_PATH = "invalid/id_missing.txt"

RECORD_SEPARATOR = "\n"


@dataclass
class SplitResult:
    """
    Result of splitting a dictionary into content objects.

    `objects` is a generator and can be consumed only once. `issues` is
    complete and sorted by source line by the time the result is returned.
    """
    objects: Iterator[ContentObject]
    issues: List[ToolboxFileIssue] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if the dictionary was split without issues"""
        return len(self.issues) == 0


def collect_orphans(scanner: Scanner, issues: List[ToolboxFileIssue]) -> str:
    """
    Consume the scanner up to the start of the first record.

    Every non-blank line raises LINE_BEFORE_FIRST_RECORD. Returns the
    collected lines with consecutive blank lines collapsed, terminated by a
    newline (empty if nothing was found).
    """
    lines: List[str] = []

    for line, token in scanner:
        if token.kind is TokenKind.RECORD_BEGIN:
            break
        if token.kind is TokenKind.BLANK:
            if lines and lines[-1].strip():
                lines.append("")
            continue
        issues.append(ToolboxFileIssue(IssueKind.LINE_BEFORE_FIRST_RECORD, line))
        lines.append(line.text)

    text = "\n".join(lines)
    if text and not text.endswith("\n"):
        text += "\n"
    return text


def orphan_objects(orphans: str) -> Iterator[ContentObject]:
    """The bucket for content before the first record, if there is any"""
    if orphans.strip():
        yield ContentObject(path=ORPHANS_PATH, content=orphans)


def join_records(bodies: List[str]) -> str:
    return RECORD_SEPARATOR.join(bodies)
