"""
Per-dictionary summaries for the status, stage and reset commands.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from rich.console import Console
from rich.markup import escape

from toolbox_core.models.config import DictionaryConfig
from toolbox_core.models.content import ChangeAction, DiffStats, WorkdirIssue, sorted_changes
from toolbox_core.models.issues import IssueKind, ToolboxFileIssue
from toolbox_core.parser.dictionary import Dictionary
from toolbox_core.storage.repository import ToolboxRepository
from toolbox_core.sync.delta_calculator import ContentDiffEngine, staged_changes
from toolbox_core.sync.workdir_detector import WorkdirChangeDetector, changes_will_be_lost

logger = logging.getLogger(__name__)


INDENT = "        "


def display_name(repo: ToolboxRepository, path: str) -> str:
    """Path of a managed file relative to the current directory"""
    absolute = repo.workdir / path
    try:
        return os.path.relpath(absolute, Path.cwd())
    except ValueError:
        return str(absolute)


@dataclass
class DictionarySummary:
    """State of one managed dictionary"""
    config: DictionaryConfig
    display_name: str
    unstaged: List[ChangeAction] = field(default_factory=list)
    staged: List[ChangeAction] = field(default_factory=list)
    workdir_issues: List[WorkdirIssue] = field(default_factory=list)
    issues: List[ToolboxFileIssue] = field(default_factory=list)

    @classmethod
    def build(cls, repo: ToolboxRepository, config: DictionaryConfig, strict: bool = False,
              workdir: bool = False, staged: bool = False) -> 'DictionarySummary':
        """
        Split the dictionary and compare it against the repository.

        Args:
            strict: Treat a missing dictionary header as an error
            workdir: Also scan the contents tree for external modifications
            staged: Also collect the changes staged for commit
        """
        dictionary = Dictionary.load(repo, config, strict=strict)
        root = dictionary.contents_root
        split = dictionary.split()

        summary = cls(config=config, display_name=display_name(repo, config.path))
        if workdir:
            summary.workdir_issues = WorkdirChangeDetector(repo).scan(root)
        summary.unstaged = ContentDiffEngine(repo).diff(root, split.objects).changes
        summary.issues = split.issues
        if staged:
            summary.staged = staged_changes(repo, root)

        logger.debug(f"{config.path}: {len(summary.unstaged)} unstaged, {len(summary.staged)} staged, "
                     f"{len(summary.workdir_issues)} external, {len(summary.issues)} issues")
        return summary

    @property
    def path(self) -> str:
        return self.config.path

    @property
    def contents_root(self) -> str:
        return self.config.contents_root

    @property
    def any_unstaged(self) -> bool:
        return bool(self.unstaged)

    @property
    def any_staged(self) -> bool:
        return bool(self.staged)

    @property
    def any_workdir_issues(self) -> bool:
        return bool(self.workdir_issues)

    @property
    def missing_header(self) -> bool:
        return any(issue.kind is IssueKind.MISSING_DICTIONARY_HEADER for issue in self.issues)

    @property
    def workdir_changes_will_be_lost(self) -> bool:
        return changes_will_be_lost(self.workdir_issues, self.unstaged)

    @property
    def unstaged_stats(self) -> DiffStats:
        return DiffStats.count(self.unstaged)

    @property
    def staged_stats(self) -> DiffStats:
        return DiffStats.count(self.staged)

    @property
    def restore_stats(self) -> DiffStats:
        """Counts as seen when restoring the dictionary from the index"""
        return self.unstaged_stats.inverted()


def _display_more(console: Console, remaining: int, what: str) -> None:
    console.print(f"{INDENT}...")
    console.print(f"{INDENT}({remaining} other {what}, use [bold]\"git toolbox status --verbose\"[/bold] to see all)")


def _to_show(items: Sequence, verbose: bool, max_to_show: int) -> int:
    return len(items) if verbose else min(max_to_show, len(items))


def display_issues(console: Console, summary: DictionarySummary, verbose: bool, max_to_show: int) -> None:
    if not summary.issues:
        return

    console.print(f"\n  Issues in [italic]{escape(summary.display_name)}[/italic]:\n")
    count = _to_show(summary.issues, verbose, max_to_show)
    for issue in summary.issues[:count]:
        console.print(f"{INDENT}{escape(str(issue))}")
    if count < len(summary.issues):
        _display_more(console, len(summary.issues) - count, "issues")


def display_changes(console: Console, summary: DictionarySummary, verbose: bool, max_to_show: int,
                    staged: bool = False) -> None:
    changes = sorted_changes(summary.staged if staged else summary.unstaged)
    if not changes:
        return

    name_style = "italic green" if staged else "italic"
    console.print(f"\n  [{name_style}]{escape(summary.display_name)}[/{name_style}]:\n")
    count = _to_show(changes, verbose, max_to_show)
    for change in changes[:count]:
        style = "green" if staged else change.style
        filename = f"[green]{escape(change.filename)}[/green]" if staged else escape(change.filename)
        console.print(f"{INDENT}[{style}]{change.diff_marker}[/{style}] {filename}")
    if count < len(changes):
        _display_more(console, len(changes) - count, "changes")


def display_workdir_issues(console: Console, summary: DictionarySummary, verbose: bool,
                           max_to_show: int) -> None:
    if not summary.workdir_issues:
        return

    count = _to_show(summary.workdir_issues, verbose, max_to_show)
    for issue in summary.workdir_issues[:count]:
        console.print(f"{INDENT}{escape(issue.display_path)}: [red]{issue.kind.value}[/red]")
    if count < len(summary.workdir_issues):
        _display_more(console, len(summary.workdir_issues) - count, "external changes")
    console.print("")
