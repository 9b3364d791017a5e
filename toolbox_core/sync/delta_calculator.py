"""
Delta calculation between generated content objects and the git index.

This module determines which files under a contents root have to be added,
rewritten or removed so that the index matches a freshly split dictionary.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from ..errors import InvalidManagedPathError
from ..models.content import ChangeAction, ChangeKind, ContentObject, DiffStats
from ..storage.repository import ToolboxRepository

logger = logging.getLogger(__name__)


CONTENT_SUFFIX = ".txt"


@dataclass
class DiffResult:
    """
    Result of comparing content objects against the index.
    """
    root: str
    changes: List[ChangeAction] = field(default_factory=list)
    unchanged: int = 0
    scan_time: float = 0.0
    total_index_entries: int = 0

    @property
    def stats(self) -> DiffStats:
        return DiffStats.count(self.changes)

    @property
    def no_changes(self) -> bool:
        return not self.changes

    def changes_of_kind(self, kind: ChangeKind) -> List[ChangeAction]:
        return [change for change in self.changes if change.kind is kind]


def _path_key(path: str) -> str:
    """Identity of a content path; case-insensitive to be safe on all filesystems"""
    return path.lower()


class ContentDiffEngine:
    """
    Compares content objects with the files tracked under a contents root.

    Paths are matched case-insensitively so that a repository stays valid
    when checked out on a case-insensitive filesystem. Content is compared
    by blob hash, with a byte comparison against the stored blob as a
    fallback.
    """

    def __init__(self, repo: ToolboxRepository):
        self.repo = repo

    def _existing_paths(self, root: str) -> Dict[str, str]:
        existing = {}
        for path in self.repo.index_entries_under(root, CONTENT_SUFFIX):
            try:
                path.encode('utf-8')
            except UnicodeEncodeError as e:
                raise InvalidManagedPathError(path) from e
            existing[_path_key(path)] = path
        return existing

    def _has_changed(self, obj: ContentObject, entry) -> bool:
        data = obj.data
        if self.repo.hash_content(data) != entry.hexsha:
            return True
        return self.repo.read_blob(entry.binsha) != data

    def diff(self, root: str, objects: Iterable[ContentObject]) -> DiffResult:
        """
        Calculate the changes needed to store `objects` under `root`.

        Args:
            root: Contents root relative to the working tree
            objects: Content objects with paths relative to `root`

        Returns:
            DiffResult with ADD and UPDATE actions in object order, followed by
            DELETE actions for tracked files no object claimed
        """
        start_time = time.perf_counter()

        existing = self._existing_paths(root)
        result = DiffResult(root=root, total_index_entries=len(existing))

        for obj in objects:
            obj = obj.under(root)
            existing.pop(_path_key(obj.path), None)

            entry = self.repo.index_entry(obj.path)
            if entry is None:
                result.changes.append(ChangeAction.add(obj))
            elif self._has_changed(obj, entry):
                result.changes.append(ChangeAction.update(obj))
            else:
                result.unchanged += 1

        for path in existing.values():
            result.changes.append(ChangeAction.delete(path))

        result.scan_time = time.perf_counter() - start_time

        stats = result.stats
        logger.info(f"Diff of {root} completed in {result.scan_time:.3f}s: "
                    f"{stats.added} added, {stats.changed} modified, {stats.deleted} deleted, "
                    f"{result.unchanged} unchanged")
        return result


def staged_changes(repo: ToolboxRepository, root: str) -> List[ChangeAction]:
    """
    Content files under `root` that differ between HEAD and the index.

    The actions carry paths only; content is not loaded. Entries whose path
    is not ASCII are skipped.
    """
    changes = []
    for xy, raw_path in repo.status_entries(root):
        if not raw_path.endswith(CONTENT_SUFFIX.encode('ascii')) or not raw_path.isascii():
            continue
        path = raw_path.decode('ascii')
        index_status = xy[0]

        if index_status == 'A':
            changes.append(ChangeAction(ChangeKind.ADD, path))
        elif index_status in 'MT':
            changes.append(ChangeAction(ChangeKind.UPDATE, path))
        elif index_status in 'DR':
            changes.append(ChangeAction(ChangeKind.DELETE, path))

    logger.debug(f"{len(changes)} staged changes under {root}")
    return changes
