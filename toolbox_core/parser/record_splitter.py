"""
Label-grouped dictionary splitter.

Records are grouped by the sanitized value of their record tag. All records
sharing a label end up in one content object, sharded by the label's first
letters.
"""

import logging
from typing import Dict, Iterator, List

from ..models.content import ContentObject
from ..models.issues import IssueKind, ToolboxFileIssue, sort_issues
from ..sync.sharding import build_path_prefix, sanitize_label
from .base import LABEL_MISSING_PATH, SplitResult, collect_orphans, join_records, orphan_objects
from .scanner import Scanner, TokenKind

logger = logging.getLogger(__name__)


def label_path(label: str) -> str:
    """Relative path of the content object holding records with this label"""
    if not label:
        return LABEL_MISSING_PATH
    return f"{build_path_prefix(label)}/{label}.txt"


def split_by_label(scanner: Scanner) -> SplitResult:
    """Split a scanned dictionary into per-label content objects"""
    issues: List[ToolboxFileIssue] = []
    orphans = collect_orphans(scanner, issues)

    records: Dict[str, List[str]] = {}
    label = ""

    for line, token in scanner:
        if token.is_tag(scanner.record_marker):
            value = token.text.strip()
            if not value:
                issues.append(ToolboxFileIssue(IssueKind.MISSING_RECORD_LABEL, line))
            label = sanitize_label(value)
        elif token.kind is TokenKind.UNTAGGED:
            issues.append(ToolboxFileIssue(IssueKind.UNTAGGED_LINE, line))
        elif token.kind is TokenKind.RECORD_END:
            records.setdefault(label, []).append(token.text)
            label = ""

    logger.debug(f"Split {sum(len(bodies) for bodies in records.values())} records "
                 f"into {len(records)} labels")

    def objects() -> Iterator[ContentObject]:
        for label, bodies in records.items():
            yield ContentObject(path=label_path(label), content=join_records(bodies))
        yield from orphan_objects(orphans)

    return SplitResult(objects=objects(), issues=sort_issues(issues))
