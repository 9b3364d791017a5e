"""
Git repository wrapper for git-toolbox.

Provides the subset of git operations the decomposition pipeline needs:
index inspection and mutation, blob access, status queries, revision
lookup, repository-local configuration and the info/attributes file.
GitPython exceptions are translated to ToolboxError subclasses here.
"""

import hashlib
import logging
import os
import struct
from io import BytesIO
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import git
from git.index.typ import IndexEntry
from gitdb.base import IStream
from gitdb.exc import BadName, BadObject

from ..errors import (
    GitObjectNotFoundError,
    InvalidRepositoryError,
    OtherGitError,
    PathNotInRepositoryError,
    RevisionNotFoundError,
)

logger = logging.getLogger(__name__)


# Stage number of regular (non-conflicted) index entries
STAGE_NORMAL = 0

STATUS_UNTRACKED = "??"

# Index stat fields are stored as unsigned 32 bit integers
_UINT32 = 0xFFFFFFFF


def _pack_time(ns: int) -> bytes:
    return struct.pack(">LL", (ns // 1_000_000_000) & _UINT32, ns % 1_000_000_000)


def blob_hash(data: bytes) -> str:
    """Git object id of a blob with the given contents"""
    header = b"blob %d\0" % len(data)
    return hashlib.sha1(header + data).hexdigest()


class ToolboxRepository:
    """
    A non-bare git repository with a working tree.

    Holds a single IndexFile instance for its lifetime so that staged
    modifications accumulate in memory until write_index() is called.
    """

    def __init__(self, repo: git.Repo):
        if repo.bare or repo.working_tree_dir is None:
            raise InvalidRepositoryError()

        self.repo = repo
        self.index = repo.index

    @classmethod
    def open(cls, path: Optional[Union[str, Path]] = None) -> 'ToolboxRepository':
        """Open the repository containing `path` (default: current directory)"""
        try:
            repo = git.Repo(path or Path.cwd(), search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise InvalidRepositoryError() from e

        logger.debug(f"Opened repository at {repo.working_tree_dir}")
        return cls(repo)

    @property
    def workdir(self) -> Path:
        return Path(self.repo.working_tree_dir)

    @property
    def git_dir(self) -> Path:
        return Path(self.repo.git_dir)

    @property
    def attributes_path(self) -> Path:
        return self.git_dir / "info" / "attributes"

    @property
    def index_lock_path(self) -> Path:
        return self.git_dir / "index.lock"

    def is_index_locked(self) -> bool:
        """Check whether another process holds the index lock"""
        return self.index_lock_path.exists()

    def relative_path(self, path: Union[str, Path]) -> str:
        """Path relative to the working tree, with forward slashes"""
        absolute = Path(path)
        if not absolute.is_absolute():
            absolute = Path.cwd() / absolute
        try:
            return absolute.resolve().relative_to(self.workdir.resolve()).as_posix()
        except ValueError as e:
            raise PathNotInRepositoryError(path) from e

    # Index access

    def index_entry(self, path: str) -> Optional[IndexEntry]:
        return self.index.entries.get((path, STAGE_NORMAL))

    def index_entries_under(self, root: str, suffix: str = ".txt") -> Dict[str, IndexEntry]:
        """Index entries below `root` whose path ends with `suffix`"""
        prefix = root.rstrip('/') + '/'
        return {
            path: entry
            for (path, stage), entry in self.index.entries.items()
            if stage == STAGE_NORMAL and path.startswith(prefix) and path.endswith(suffix)
        }

    def _with_stat_data(self, entry: IndexEntry) -> IndexEntry:
        """Copy the stat data of the working tree file into an index entry"""
        full_path = self.workdir / entry.path
        try:
            st = os.lstat(full_path)
        except OSError as e:
            raise OtherGitError(f"unable to stat {full_path}: {e}") from e

        return IndexEntry((
            entry.mode, entry.binsha, entry.flags, entry.path,
            _pack_time(st.st_ctime_ns), _pack_time(st.st_mtime_ns),
            st.st_dev & _UINT32, st.st_ino & _UINT32,
            st.st_uid & _UINT32, st.st_gid & _UINT32,
            st.st_size & _UINT32,
        ))

    def add_to_index(self, paths: List[str]) -> None:
        """
        Stage working tree files (in memory only).

        IndexFile.add leaves the stat fields of new entries zeroed; they are
        refreshed from the files on disk.
        """
        try:
            entries = self.index.add(paths, write=False)
        except (git.GitCommandError, OSError) as e:
            raise OtherGitError(f"unable to add {', '.join(paths)} to the index: {e}") from e

        for entry in entries:
            self.index.entries[(entry.path, STAGE_NORMAL)] = self._with_stat_data(entry)

    def remove_from_index(self, path: str) -> bool:
        """Drop the index entry for `path` (in memory only)"""
        return self.index.entries.pop((path, STAGE_NORMAL), None) is not None

    def replace_index_blob(self, path: str, data: bytes) -> None:
        """Point the index entry of `path` to a blob holding `data`, keeping its stat data"""
        entry = self.index_entry(path)
        if entry is None:
            raise GitObjectNotFoundError(path, "the index")
        binsha = self.store_blob(data)
        self.index.entries[(path, STAGE_NORMAL)] = IndexEntry(entry[:1] + (binsha,) + entry[2:])

    def write_index(self) -> None:
        try:
            self.index.write()
        except (git.GitCommandError, OSError) as e:
            raise OtherGitError(f"unable to write the index: {e}") from e

    # Object access

    @staticmethod
    def hash_content(data: bytes) -> str:
        return blob_hash(data)

    def store_blob(self, data: bytes) -> bytes:
        """Write a blob to the object database, returning its binary sha"""
        istream = self.repo.odb.store(IStream(git.Blob.type, len(data), BytesIO(data)))
        return istream.binsha

    def read_blob(self, binsha: bytes) -> bytes:
        try:
            return self.repo.odb.stream(binsha).read()
        except (BadObject, ValueError, git.GitCommandError) as e:
            raise OtherGitError(f"unable to read object {binsha.hex()}: {e}") from e

    def read_staged_file(self, path: str) -> Optional[bytes]:
        """Contents of a file as staged in the index, None if it is not tracked"""
        entry = self.index_entry(path)
        if entry is None:
            return None
        return self.read_blob(entry.binsha)

    def resolve_tree(self, rev: str, path: str) -> git.Tree:
        """Locate the tree at `path` in revision `rev`"""
        try:
            commit = self.repo.commit(rev)
        except (BadName, BadObject, ValueError) as e:
            raise RevisionNotFoundError(rev) from e

        try:
            obj = commit.tree / path
        except KeyError as e:
            raise GitObjectNotFoundError(path, rev) from e

        if obj.type != git.Tree.type:
            raise GitObjectNotFoundError(path, rev)
        return obj

    # Status

    def status_entries(self, root: str) -> Iterator[Tuple[str, bytes]]:
        """
        Porcelain status below `root`, untracked files included.

        Yields (XY, raw path) pairs; X is the index status and Y the working
        tree status. Paths are returned as bytes since they are not
        guaranteed to be valid text.
        """
        try:
            output = self.repo.git.status(
                '--porcelain=v1', '-z', '--untracked-files=all', '--', root,
                stdout_as_string=False
            )
        except git.GitCommandError as e:
            raise OtherGitError(f"unable to get status of {root}: {e}") from e

        fields = iter(output.split(b'\0'))
        for field in fields:
            if len(field) < 4:
                continue
            xy = field[:2].decode('ascii')
            yield xy, field[3:]
            # renames and copies are followed by the original path
            if xy[0] in 'RC':
                next(fields, None)

    def head_display_name(self) -> str:
        """Name of the current branch, or the detached commit"""
        try:
            return self.repo.active_branch.name
        except TypeError:
            return f"detached at {self.repo.head.commit.hexsha[:7]}"

    # Configuration

    def get_config(self, section: str, option: str) -> Optional[str]:
        """Read a value from the repository-local git config"""
        reader = self.repo.config_reader(config_level="repository")
        if not reader.has_option(section, option):
            return None
        return reader.get(section, option)

    def set_config(self, values: Dict[Tuple[str, str], str]) -> None:
        """Write values to the repository-local git config"""
        with self.repo.config_writer(config_level="repository") as writer:
            for (section, option), value in values.items():
                writer.set_value(section, option, value)

    def read_attributes(self) -> str:
        try:
            return self.attributes_path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return ""

    def write_attributes(self, text: str) -> None:
        self.attributes_path.parent.mkdir(parents=True, exist_ok=True)
        self.attributes_path.write_text(text, encoding='utf-8')
