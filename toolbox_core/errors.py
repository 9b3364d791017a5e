"""
Error catalogue for git-toolbox.

Every failure that aborts a command is raised as a subclass of ToolboxError.
Structural problems found inside a Toolbox file are not errors; they are
collected as ToolboxFileIssue values (see models.issues).
"""

from pathlib import Path
from typing import Optional, Tuple, Union


PathLike = Union[str, Path]


class ToolboxError(Exception):
    """Base class for all git-toolbox errors"""

    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""


# Repository and git errors

class InvalidRepositoryError(ToolboxError):
    """Raised when no usable (non-bare) git repository can be located"""

    def __init__(self):
        super().__init__(
            "unable to locate the git repository",
            hint="Are you running 'git toolbox' from outside your git project?"
        )


class OtherGitError(ToolboxError):
    """Raised when a git operation fails for any other reason"""

    def __init__(self, msg: str):
        super().__init__(f"git error: {msg}")


class PathNotInRepositoryError(ToolboxError):
    """Raised when a path lies outside the working tree"""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"{path} is not within the repository")


class NotAManagedFileError(ToolboxError):
    """Raised when a path is not listed as a dictionary in the configuration"""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"{path} does not exist or is not a managed file")


class InvalidManagedPathError(ToolboxError):
    """Raised when a tracked path under a contents root is not valid UTF-8"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"invalid characters in a managed path {path!r}")


class UnableToStageManagedFileError(ToolboxError):
    """Raised by the clean filter when a managed file is staged manually"""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(
            f"{path} is a managed file and cannot be staged manually",
            hint=f"use 'git toolbox stage {path}' to stage it"
        )


class ExternalModificationsWillBeLostError(ToolboxError):
    """Raised when staging would overwrite edits made outside git-toolbox"""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(
            f"some external modifications to the managed path {path} would be lost"
        )


class IndexLockedError(ToolboxError):
    """Raised when another process appears to be writing the git index"""

    def __init__(self, lock_path: PathLike):
        self.lock_path = Path(lock_path)
        super().__init__(
            f"the git index is locked ({lock_path})",
            hint="another git process seems to be running; retry once it has finished"
        )


class GitObjectNotFoundError(ToolboxError):
    """Raised when a path does not exist in a revision or in the index"""

    def __init__(self, path: str, rev: str):
        self.path = path
        self.rev = rev
        super().__init__(f"{path} not found in {rev}")


class RevisionNotFoundError(ToolboxError):
    """Raised when a revision cannot be resolved"""

    def __init__(self, rev: str):
        self.rev = rev
        super().__init__(f"invalid git revision {rev}")


class InvalidPathSpecError(ToolboxError):
    """Raised when a `rev:path` specification cannot be parsed"""

    def __init__(self, pathspec: str):
        self.pathspec = pathspec
        super().__init__(f"{pathspec!r} is not valid git path specification")


# File I/O errors

class ManagedFileNotFoundError(ToolboxError):
    """Raised when a managed dictionary file is missing on disk"""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"{path} not found")


class FileReadError(ToolboxError):
    """Raised when a file cannot be read or decoded"""

    def __init__(self, path: PathLike, msg: str):
        self.path = Path(path)
        super().__init__(f"unable to read {path} ({msg})")


class FileWriteError(ToolboxError):
    """Raised when a file or directory cannot be written"""

    def __init__(self, path: PathLike, msg: str):
        self.path = Path(path)
        super().__init__(f"unable to write {path} ({msg})")


class FileDeleteError(ToolboxError):
    """Raised when a file cannot be removed"""

    def __init__(self, path: PathLike, msg: str):
        self.path = Path(path)
        super().__init__(f"unable to delete {path} ({msg})")


# Dictionary errors

class MissingDictionaryHeaderError(ToolboxError):
    """Raised in strict mode when a dictionary lacks the Toolbox header"""

    def __init__(self, path: PathLike, line: int, excerpt: str = ""):
        self.path = Path(path)
        self.line = line
        self.excerpt = excerpt
        super().__init__(
            f"toolbox dictionary header missing or invalid in {path} (line {line + 1})",
            hint="expected a header line such as '\\_sh v3.0 400 Dictionary'"
        )


class LifecycleNotSupportedError(ToolboxError):
    """Raised when a dictionary asks for lifecycle management"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"lifecycle-managed dictionaries are not supported ({name})")


# Configuration errors

class ConfigurationError(ToolboxError):
    """Raised when the configuration file cannot be parsed or validated"""

    def __init__(self, msg: str, at: Optional[Tuple[int, int]] = None):
        self.msg = msg
        self.at = at
        location = f" at line {at[0]}, column {at[1]}" if at else ""
        super().__init__(f"malformed configuration{location}: {msg}")


class ConfigurationChangedError(ToolboxError):
    """Raised when the working copy of the configuration differs from the index"""

    def __init__(self, config_file: str):
        super().__init__(
            f"configuration file {config_file} has changed",
            hint="Please run 'git toolbox setup' before proceeding"
        )


class ConfigurationNeededError(ToolboxError):
    """Raised when git config or attributes do not match the configuration"""

    def __init__(self):
        super().__init__(
            "the repository needs to be configured",
            hint="Please run 'git toolbox setup' before proceeding"
        )


class ConfigurationMissingError(ToolboxError):
    """Raised when the configuration file does not exist"""

    def __init__(self, config_file: str):
        super().__init__(
            f"configuration file {config_file} is missing",
            hint="Please provide a valid configuration and run 'git toolbox setup' before proceeding"
        )


class ConfigurationExistsError(ToolboxError):
    """Raised by `setup --init` when a configuration file is already present"""

    def __init__(self, config_file: str):
        super().__init__(f"configuration file {config_file} already exists")
