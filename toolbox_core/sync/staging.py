"""
Staging of content changes.

Applies change actions to the working tree and the in-memory index, and
stages managed dictionaries as placeholders. Nothing reaches the index file
on disk until commit() is called. File system changes are applied
immediately and are not rolled back if a later action fails.
"""

import logging
import os
from pathlib import PurePosixPath
from typing import Callable, Iterable, List, Optional, Set

from ..errors import FileDeleteError, FileWriteError, IndexLockedError
from ..models.content import ChangeAction, ChangeKind
from ..storage.repository import ToolboxRepository

logger = logging.getLogger(__name__)


# Placeholder stored in the index instead of a managed file's contents
MANAGED_FILE_TEXT = (
    "This file is managed by git-toolbox.\n"
    "\n"
    "If you see this text, your repository is either misconfigured or has encountered\n"
    "an error during operation. Please run \"git toolbox reset\" and contact IT support\n"
    "if your issue persists.\n"
)


class StagingArea:
    """
    Applies change sets to a repository.

    Raises IndexLockedError on construction if another git process holds the
    index lock.
    """

    def __init__(self, repo: ToolboxRepository):
        if repo.is_index_locked():
            raise IndexLockedError(repo.index_lock_path)

        self.repo = repo
        self.workdir = repo.workdir

    def _write(self, change: ChangeAction) -> None:
        full_path = self.workdir / change.path
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(change.obj.data)
        except OSError as e:
            raise FileWriteError(full_path, str(e)) from e

    def _delete(self, change: ChangeAction) -> None:
        full_path = self.workdir / change.path
        try:
            full_path.unlink()
        except FileNotFoundError:
            # already removed in the working tree
            logger.debug(f"{change.path} does not exist in the working tree")
        except OSError as e:
            raise FileDeleteError(full_path, str(e)) from e

    def _remove_empty_parents(self, parents: Set[PurePosixPath]) -> None:
        """Remove empty directories bottom-up, never the working tree root"""
        while parents:
            next_parents = set()
            for path in parents:
                if path == path.parent:
                    continue
                try:
                    os.rmdir(self.workdir / path)
                except OSError:
                    continue
                logger.debug(f"Removed empty directory {path}")
                next_parents.add(path.parent)
            parents = next_parents

    def stage_changes(self, changes: Iterable[ChangeAction],
                      notify: Optional[Callable[[ChangeAction], None]] = None) -> None:
        """
        Apply changes to the working tree and the in-memory index.

        Args:
            changes: Actions with paths relative to the working tree
            notify: Called with every action before it is applied

        Raises:
            FileWriteError, FileDeleteError: on file system failures; actions
                applied earlier are kept
        """
        deleted_parents: Set[PurePosixPath] = set()
        written: List[str] = []
        count = 0

        for change in changes:
            if notify:
                notify(change)

            if change.kind is ChangeKind.DELETE:
                self._delete(change)
                self.repo.remove_from_index(change.path)
                deleted_parents.add(PurePosixPath(change.path).parent)
            else:
                self._write(change)
                written.append(change.path)
            count += 1

        if written:
            self.repo.add_to_index(written)
        self._remove_empty_parents(deleted_parents)
        logger.info(f"Staged {count} changes")

    def stage_managed_file(self, path: str) -> None:
        """
        Stage a managed dictionary as a placeholder.

        The index entry points to MANAGED_FILE_TEXT but keeps the stat data
        (including the size) of the file on disk, so git does not consider
        the working copy modified.
        """
        self.repo.add_to_index([path])
        self.repo.replace_index_blob(path, MANAGED_FILE_TEXT.encode('utf-8'))
        logger.debug(f"Staged placeholder for {path}")

    def commit(self) -> None:
        """Write the index to disk"""
        self.repo.write_index()
