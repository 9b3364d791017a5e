"""
git-toolbox core package

Decomposes Toolbox dictionaries into per-record text objects tracked by git.
"""

__version__ = "0.2.0"

from .errors import ToolboxError
from .models import ContentObject, ChangeAction, DictionaryConfig, ToolboxConfig, ToolboxFileIssue

__all__ = [
    "ToolboxError",
    "ContentObject",
    "ChangeAction",
    "DictionaryConfig",
    "ToolboxConfig",
    "ToolboxFileIssue",
]
