"""
Structural issues detected in Toolbox dictionary files.

Issues never abort processing: splitters collect them next to their output
so that commands can report them after the fact.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class Line:
    """A line of source text (number is 0-based, text excludes the terminator)"""
    number: int
    text: str

    @property
    def display_number(self) -> int:
        return self.number + 1


class IssueKind(Enum):
    """Kinds of structural issues in a Toolbox file"""
    LINE_BEFORE_FIRST_RECORD = "line_before_first_record"
    UNTAGGED_LINE = "untagged_line"
    MISSING_RECORD_LABEL = "missing_record_label"
    MISSING_ID = "missing_id"
    INVALID_ID = "invalid_id"
    EXTRANEOUS_ID = "extraneous_id"
    AMBIGUOUS_ID = "ambiguous_id"
    MISSING_DICTIONARY_HEADER = "missing_dictionary_header"


def truncate_text(text: str, length: int) -> str:
    """Truncate text to the given display length, adding ellipsis dots if truncated"""
    if len(text) <= length:
        return text
    return text[:max(length - 3, 0)] + "..."


@dataclass(frozen=True)
class ToolboxFileIssue:
    """
    An issue in a Toolbox file's contents.

    `line` is the offending line. For id issues `record` is the first line of
    the record the id belongs to.
    """
    kind: IssueKind
    line: Line
    record: Optional[Line] = None

    @classmethod
    def missing_header(cls, line_number: int) -> 'ToolboxFileIssue':
        return cls(IssueKind.MISSING_DICTIONARY_HEADER, Line(line_number, ""))

    @property
    def line_number(self) -> int:
        return self.line.number

    def describe(self) -> str:
        """Human-readable description (without the line prefix)"""
        kind = self.kind
        value = self.line.text.strip()
        record = self.record.text.strip() if self.record else ""

        if kind is IssueKind.LINE_BEFORE_FIRST_RECORD:
            return f"line '{truncate_text(self.line.text, 30)}' occurs before the first record"
        if kind is IssueKind.UNTAGGED_LINE:
            return f"untagged line '{truncate_text(self.line.text, 30)}'"
        if kind is IssueKind.MISSING_RECORD_LABEL:
            return f"missing a label in the record '{value}'"
        if kind is IssueKind.MISSING_ID:
            return f"missing ID tag in the record '{value}'"
        if kind is IssueKind.INVALID_ID:
            return f"invalid ID tag '{value}' in the record '{record}'"
        if kind is IssueKind.EXTRANEOUS_ID:
            return f"extraneous ID tag '{value}' will be ignored in the record '{record}'"
        if kind is IssueKind.AMBIGUOUS_ID:
            return f"ID tag '{value}' in the record '{record}' is not unique"
        return "missing Toolbox dictionary header"

    def __str__(self) -> str:
        return f"line:{self.line.display_number:<8} {self.describe()}"


def sort_issues(issues: List[ToolboxFileIssue]) -> List[ToolboxFileIssue]:
    """Sort issues by source line (stable for issues on the same line)"""
    return sorted(issues, key=lambda issue: issue.line_number)
