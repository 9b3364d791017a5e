"""
Unique-id-grouped dictionary splitter.

Every record is expected to carry an id tag whose value matches the
configured id pattern. Records are stored one file per id, either in the
public tree (sharded by id) or in the private tree of the id's namespace.
Records sharing an id are merged into the same file and reported as
ambiguous rather than rejected.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Pattern, Tuple

from ..models.content import ContentObject
from ..models.issues import IssueKind, Line, ToolboxFileIssue, sort_issues
from ..sync.sharding import build_path_prefix
from .base import ID_MISSING_PATH, SplitResult, collect_orphans, join_records, orphan_objects
from .scanner import Scanner, TokenKind

logger = logging.getLogger(__name__)


# Characters that would escape the generated directory layout
_UNSAFE_ID_CHARS = ('/', '\\')


@dataclass(frozen=True)
class RecordId:
    """A parsed record id; `full` is the complete (trimmed) tag value"""
    full: str
    namespace: Optional[str]
    id: str

    @property
    def path(self) -> str:
        """Relative path of the content object for this id"""
        if self.namespace:
            return f"private/{self.namespace}/{self.full}.txt"
        return f"public/{build_path_prefix(self.id)}/{self.full}.txt"


def extract_id(text: str, id_spec: Pattern) -> Optional[RecordId]:
    """
    Parse an id tag value.

    The value must match `id_spec` in full and produce a non-empty `id`
    group. An empty `namespace` group means the id is public. Ids that
    cannot be used as an ASCII file name are rejected.
    """
    match = id_spec.fullmatch(text)
    if match is None:
        return None

    namespace = (match.group('namespace') or '').strip() or None
    id_ = (match.group('id') or '').strip()
    if not id_:
        return None

    if not text.isascii() or any(c in text for c in _UNSAFE_ID_CHARS):
        logger.debug(f"Rejecting id {text!r}: not usable as a file name")
        return None

    return RecordId(full=text, namespace=namespace, id=id_)


def split_by_id(scanner: Scanner, id_marker: str, id_spec: Pattern) -> SplitResult:
    """Split a scanned dictionary into per-id content objects"""
    issues: List[ToolboxFileIssue] = []
    orphans = collect_orphans(scanner, issues)

    # records in order of first appearance of their id
    records: Dict[RecordId, List[Tuple[Line, Line, str]]] = {}
    id_missing: List[str] = []

    record_start = Line(0, "")
    record_id: Optional[RecordId] = None
    record_id_line = Line(0, "")

    for line, token in scanner:
        if token.is_tag(scanner.record_marker):
            record_start = line
            if not token.text.strip():
                issues.append(ToolboxFileIssue(IssueKind.MISSING_RECORD_LABEL, line))

        elif token.is_tag(id_marker):
            if record_id is not None:
                issues.append(ToolboxFileIssue(IssueKind.EXTRANEOUS_ID, line, record_start))

            parsed = extract_id(token.text.strip(), id_spec)
            if parsed is None:
                issues.append(ToolboxFileIssue(IssueKind.INVALID_ID, line, record_start))
            elif record_id is None:
                record_id = parsed
                record_id_line = line

        elif token.kind is TokenKind.UNTAGGED:
            issues.append(ToolboxFileIssue(IssueKind.UNTAGGED_LINE, line))

        elif token.kind is TokenKind.RECORD_END:
            if record_id is not None:
                records.setdefault(record_id, []).append((record_start, record_id_line, token.text))
                record_id = None
            else:
                id_missing.append(token.text)
                issues.append(ToolboxFileIssue(IssueKind.MISSING_ID, record_start))

    for occurrences in records.values():
        if len(occurrences) > 1:
            for start, id_line, _ in occurrences:
                issues.append(ToolboxFileIssue(IssueKind.AMBIGUOUS_ID, id_line, start))

    logger.debug(f"Split {len(records)} ids, {len(id_missing)} records without id")

    def objects() -> Iterator[ContentObject]:
        for record_id, occurrences in records.items():
            content = join_records([body for _, _, body in occurrences])
            yield ContentObject(path=record_id.path, content=content)
        if id_missing:
            yield ContentObject(path=ID_MISSING_PATH, content=join_records(id_missing))
        yield from orphan_objects(orphans)

    return SplitResult(objects=objects(), issues=sort_issues(issues))
