"""
Detection of external modifications to contents trees.

Files under a contents root are owned by git-toolbox; any difference between
them and the index was made by someone else and may be overwritten by the
next staging run.
"""

import logging
import time
from typing import Iterable, List, Optional

from ..models.content import ChangeAction, WorkdirIssue, WorkdirIssueKind
from ..storage.repository import STATUS_UNTRACKED, ToolboxRepository

logger = logging.getLogger(__name__)


CONTENT_SUFFIX = b".txt"


def _classify(xy: str) -> Optional[WorkdirIssueKind]:
    if xy == STATUS_UNTRACKED:
        return WorkdirIssueKind.ADDED_IN_WORKDIR

    worktree_status = xy[1]
    if worktree_status in 'MT':
        return WorkdirIssueKind.UPDATED_IN_WORKDIR
    if worktree_status in 'DR':
        return WorkdirIssueKind.DELETED_IN_WORKDIR
    return None


class WorkdirChangeDetector:
    """Reports working tree changes under a contents root (read-only)"""

    def __init__(self, repo: ToolboxRepository):
        self.repo = repo

    def scan(self, root: str) -> List[WorkdirIssue]:
        """
        Compare the working tree with the index below `root`.

        Untracked files are reported as added, ignored files are skipped.
        Only content files (*.txt) are considered; a content file whose path
        is not ASCII is reported as an invalid path regardless of its status.
        """
        start_time = time.perf_counter()
        issues = []

        for xy, raw_path in self.repo.status_entries(root):
            if not raw_path.endswith(CONTENT_SUFFIX):
                continue

            if not raw_path.isascii():
                issues.append(WorkdirIssue(WorkdirIssueKind.INVALID_PATH, raw_path))
                continue

            kind = _classify(xy)
            if kind is not None:
                issues.append(WorkdirIssue(kind, raw_path))

        logger.debug(f"Workdir scan of {root} completed in {time.perf_counter() - start_time:.3f}s, "
                     f"{len(issues)} external modifications")
        return issues


def changes_will_be_lost(issues: Iterable[WorkdirIssue], changes: Iterable[ChangeAction]) -> bool:
    """Check whether applying `changes` would overwrite an external modification"""
    modified = {issue.path for issue in issues}
    return any(change.path in modified for change in changes)
