"""
Core data models for git-toolbox

Dataclasses and Pydantic models for diagnostics, content objects, change sets
and configuration.
"""

from .issues import IssueKind, Line, ToolboxFileIssue, sort_issues
from .content import (
    ChangeAction,
    ChangeKind,
    ContentObject,
    DiffStats,
    WorkdirIssue,
    WorkdirIssueKind,
    sorted_changes,
)
from .config import DictionaryConfig, ToolboxConfig, ToolboxSettings, UserConfig, UserRole

__all__ = [
    # Diagnostics
    "IssueKind",
    "Line",
    "ToolboxFileIssue",
    "sort_issues",

    # Content
    "ChangeAction",
    "ChangeKind",
    "ContentObject",
    "DiffStats",
    "WorkdirIssue",
    "WorkdirIssueKind",
    "sorted_changes",

    # Configuration
    "DictionaryConfig",
    "ToolboxConfig",
    "ToolboxSettings",
    "UserConfig",
    "UserRole",
]
