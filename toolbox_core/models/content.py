"""
Content objects and change sets.

A content object (CLOB) is one generated text unit holding one or more
joined Toolbox records. The diff engine compares content objects against the
git index and produces change actions; the staging area applies them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from natsort import natsorted
from pydantic import BaseModel, ConfigDict, field_validator


class ContentObject(BaseModel):
    """A text object to be stored at a generated path"""
    model_config = ConfigDict(frozen=True)

    path: str
    content: str

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Content object paths must be ASCII"""
        if not v.isascii():
            raise ValueError(f"non-ascii content object path {v!r}")
        return v

    @property
    def data(self) -> bytes:
        return self.content.encode('utf-8')

    def under(self, root: str) -> 'ContentObject':
        """Return a copy whose path is prefixed with `root`"""
        return ContentObject(path=f"{root}/{self.path}", content=self.content)


class ChangeKind(Enum):
    """Kinds of filesystem update actions"""
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


_DIFF_MARKERS = {
    ChangeKind.ADD: "added   ",
    ChangeKind.UPDATE: "modified",
    ChangeKind.DELETE: "deleted ",
}

_DIFF_STYLES = {
    ChangeKind.ADD: "green",
    ChangeKind.UPDATE: "yellow",
    ChangeKind.DELETE: "red",
}


@dataclass(frozen=True)
class ChangeAction:
    """
    A filesystem update action.

    ADD and UPDATE carry the content object to write. DELETE only carries the
    path to remove.
    """
    kind: ChangeKind
    path: str
    obj: Optional[ContentObject] = None

    @classmethod
    def add(cls, obj: ContentObject) -> 'ChangeAction':
        return cls(ChangeKind.ADD, obj.path, obj)

    @classmethod
    def update(cls, obj: ContentObject) -> 'ChangeAction':
        return cls(ChangeKind.UPDATE, obj.path, obj)

    @classmethod
    def delete(cls, path: str) -> 'ChangeAction':
        return cls(ChangeKind.DELETE, path)

    @property
    def filename(self) -> str:
        return self.path.rsplit('/', 1)[-1]

    @property
    def diff_marker(self) -> str:
        return _DIFF_MARKERS[self.kind]

    @property
    def style(self) -> str:
        """rich style name used when displaying this action"""
        return _DIFF_STYLES[self.kind]


@dataclass
class DiffStats:
    """Summary counts of a change set"""
    added: int = 0
    changed: int = 0
    deleted: int = 0

    @classmethod
    def count(cls, changes: Iterable[ChangeAction]) -> 'DiffStats':
        stats = cls()
        for change in changes:
            if change.kind is ChangeKind.ADD:
                stats.added += 1
            elif change.kind is ChangeKind.UPDATE:
                stats.changed += 1
            else:
                stats.deleted += 1
        return stats

    @property
    def no_changes(self) -> bool:
        return self.added == 0 and self.changed == 0 and self.deleted == 0

    def inverted(self) -> 'DiffStats':
        """Counts as seen when restoring instead of staging"""
        return DiffStats(added=self.deleted, changed=self.changed, deleted=self.added)

    def to_markup(self) -> str:
        """rich markup rendering"""
        if self.no_changes:
            return "       [green]no changes[/green]"
        return (
            f"{self.added:>6} [green]added[/green] "
            f"{self.changed:>6} [yellow]modified[/yellow] "
            f"{self.deleted:>6} [red]deleted[/red]"
        )


class WorkdirIssueKind(Enum):
    """Kinds of edits made to a contents tree outside git-toolbox"""
    ADDED_IN_WORKDIR = "new in the working directory"
    UPDATED_IN_WORKDIR = "modified in working directory"
    DELETED_IN_WORKDIR = "deleted in working directory"
    INVALID_PATH = "invalid managed file path"


@dataclass(frozen=True)
class WorkdirIssue:
    """An external modification detected in the working tree"""
    kind: WorkdirIssueKind
    raw_path: bytes

    @property
    def path(self) -> str:
        """The path as text (empty for invalid paths)"""
        if self.kind is WorkdirIssueKind.INVALID_PATH:
            return ""
        return self.raw_path.decode('ascii')

    @property
    def display_path(self) -> str:
        """Printable path with non-ascii characters escaped"""
        text = self.raw_path.decode('utf-8', errors='replace')
        return text.encode('ascii', errors='backslashreplace').decode('ascii')


def sorted_changes(changes: Iterable[ChangeAction]) -> List[ChangeAction]:
    """Changes in natural path order for display"""
    return natsorted(changes, key=lambda change: change.path)
