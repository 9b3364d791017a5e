"""
Reconstruction of dictionaries from their contents trees.

Concatenates the content objects stored under a contents root, either in the
index or in a given revision, into a Toolbox dictionary.
"""

import logging
from typing import Iterable, Iterator, List, Tuple

import git
from natsort import natsorted

from ..errors import GitObjectNotFoundError, InvalidPathSpecError
from ..storage.repository import ToolboxRepository

logger = logging.getLogger(__name__)


# Header written in front of reconstructed dictionaries
DICTIONARY_HEADER = b"\\_sh v3.0  864  Dictionary\n"

CONTENT_SUFFIX = ".txt"
DEFAULT_REVISION = "HEAD"
INDEX = "the index"


def parse_path_spec(pathspec: str) -> Tuple[str, str]:
    """
    Split a `[rev:]path` specification.

    Returns:
        (revision, path); the revision defaults to HEAD
    """
    rev, separator, path = pathspec.partition(":")
    if not separator:
        rev, path = DEFAULT_REVISION, rev

    rev = rev.strip()
    path = path.strip()
    if not path:
        raise InvalidPathSpecError(pathspec)
    return rev, path


def _join(blobs: Iterable[bytes]) -> bytes:
    parts = [DICTIONARY_HEADER]
    for data in blobs:
        parts.append(b"\n")
        parts.append(data)
    return b"".join(parts)


def _index_blobs(repo: ToolboxRepository, root: str) -> List[bytes]:
    entries = repo.index_entries_under(root, CONTENT_SUFFIX)
    if not entries:
        raise GitObjectNotFoundError(root, INDEX)
    return [repo.read_blob(entries[path].binsha) for path in natsorted(entries)]


def _tree_blobs(tree: git.Tree) -> Iterator[bytes]:
    """Content blobs of a tree, depth first, entries in natural name order"""
    for obj in natsorted(tree, key=lambda o: o.name):
        if obj.type == git.Tree.type:
            yield from _tree_blobs(obj)
        elif obj.type == git.Blob.type and obj.name.endswith(CONTENT_SUFFIX):
            yield obj.data_stream.read()


def reconstruct(repo: ToolboxRepository, root: str, rev: str = "") -> bytes:
    """
    Rebuild a dictionary from the content objects under `root`.

    Args:
        repo: Repository to read from
        root: Contents root relative to the working tree
        rev: Revision to read; empty to read from the index

    Raises:
        GitObjectNotFoundError: if there is nothing under `root`
        RevisionNotFoundError: if `rev` cannot be resolved
    """
    if rev:
        blobs = list(_tree_blobs(repo.resolve_tree(rev, root)))
        source = rev
    else:
        blobs = _index_blobs(repo, root)
        source = INDEX

    logger.info(f"Reconstructed {root} from {source} ({len(blobs)} objects)")
    return _join(blobs)
