"""
Synchronization of dictionaries with their contents trees.

Key Components:
- build_path_prefix / sanitize_label: deterministic, human-readable sharding
- ContentDiffEngine: compares content objects against the git index
- WorkdirChangeDetector: finds external edits to contents trees
- StagingArea: applies change sets to the working tree and the index
- reconstruct: rebuilds a dictionary from the index or a revision
"""

from .sharding import build_path_prefix, sanitize_label
from .delta_calculator import ContentDiffEngine, DiffResult, staged_changes
from .workdir_detector import WorkdirChangeDetector, changes_will_be_lost
from .staging import MANAGED_FILE_TEXT, StagingArea
from .reconstruct import parse_path_spec, reconstruct

__all__ = [
    "build_path_prefix",
    "sanitize_label",
    "ContentDiffEngine",
    "DiffResult",
    "staged_changes",
    "WorkdirChangeDetector",
    "changes_will_be_lost",
    "MANAGED_FILE_TEXT",
    "StagingArea",
    "parse_path_spec",
    "reconstruct",
]
