"""
git-toolbox - keeps Toolbox dictionaries under git version control.

Decomposes monolithic Toolbox dictionaries into per-record text files that
git can diff and merge, and rebuilds them on checkout through a git content
filter.
"""

__version__ = "0.2.0"

from toolbox_core.errors import ToolboxError
from toolbox_core.models.config import ToolboxConfig, DictionaryConfig

__all__ = [
    "ToolboxError",
    "ToolboxConfig",
    "DictionaryConfig",
    "__version__",
]
