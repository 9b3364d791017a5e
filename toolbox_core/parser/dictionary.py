"""
Toolbox dictionary loading and splitting.
"""

import logging
import time
from pathlib import Path
from typing import List

from ..errors import LifecycleNotSupportedError, MissingDictionaryHeaderError
from ..models.config import DictionaryConfig
from ..models.issues import ToolboxFileIssue, sort_issues
from .base import SplitResult
from .error_recovery import read_text_file
from .id_splitter import split_by_id
from .record_splitter import split_by_label
from .scanner import Scanner

logger = logging.getLogger(__name__)


class Dictionary:
    """
    A loaded Toolbox dictionary.

    The dictionary owns the source text; its scanner is positioned after the
    dictionary header. A dictionary can be split only once.
    """

    def __init__(self, config: DictionaryConfig, text: str, scanner: Scanner,
                 issues: List[ToolboxFileIssue]):
        self.config = config
        self.text = text
        self.scanner = scanner
        self.issues = issues

    @classmethod
    def from_text(cls, text: str, config: DictionaryConfig, strict: bool = False,
                  path: str = "") -> 'Dictionary':
        """
        Prepare a dictionary from its text.

        In strict mode a missing or malformed header raises
        MissingDictionaryHeaderError. Otherwise it is reported as an issue
        and the whole text, first line included, is split.
        """
        issues: List[ToolboxFileIssue] = []

        scanner = Scanner(text, config.record_tag)
        missing = scanner.expect_dictionary_header()
        if missing is not None:
            if strict:
                lines = text.splitlines()
                excerpt = lines[missing.line_number] if missing.line_number < len(lines) else ""
                raise MissingDictionaryHeaderError(path or config.path, missing.line_number, excerpt)

            issues.append(ToolboxFileIssue.missing_header(missing.line_number))
            scanner = Scanner(text, config.record_tag)

        return cls(config, text, scanner, issues)

    @classmethod
    def load(cls, repo, config: DictionaryConfig, strict: bool = False) -> 'Dictionary':
        """Load the dictionary from the working tree of `repo`"""
        path = Path(repo.workdir) / config.path
        text = read_text_file(path)
        logger.debug(f"Loaded {path} ({len(text)} characters)")
        return cls.from_text(text, config, strict=strict, path=str(path))

    @property
    def contents_root(self) -> str:
        return self.config.contents_root

    def split(self) -> SplitResult:
        """
        Split into content objects.

        Raises:
            LifecycleNotSupportedError: for lifecycle-managed dictionaries
        """
        if self.config.lifecycle:
            raise LifecycleNotSupportedError(self.config.name or self.config.path)

        start_time = time.perf_counter()

        if self.config.unique_id:
            result = split_by_id(self.scanner, self.config.id_tag, self.config.id_spec)
        else:
            result = split_by_label(self.scanner)

        result.issues = sort_issues(self.issues + result.issues)

        logger.info(f"Split {self.config.path} in {(time.perf_counter() - start_time) * 1000:.1f}ms, "
                    f"{len(result.issues)} issues")
        return result
