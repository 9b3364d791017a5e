"""
CLI commands for git-toolbox.

Provides the `git-toolbox` command-line interface (usually invoked as
`git toolbox ...`) for repository setup, status reports, staging and
restoring managed Toolbox dictionaries, and the git content filter.
"""

import functools
import logging
import sys
from typing import Callable, List, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from toolbox_config.loader import ConfigurationLoader
from toolbox_config.repo_setup import configure_repository, validate_repository
from toolbox_core.errors import (
    ExternalModificationsWillBeLostError,
    FileWriteError,
    ToolboxError,
    UnableToStageManagedFileError,
)
from toolbox_core.models.config import DictionaryConfig, ToolboxConfig, ToolboxSettings
from toolbox_core.models.content import ChangeAction, ChangeKind, DiffStats, sorted_changes
from toolbox_core.storage.repository import ToolboxRepository
from toolbox_core.sync.delta_calculator import ContentDiffEngine
from toolbox_core.sync.reconstruct import parse_path_spec, reconstruct
from toolbox_core.sync.staging import MANAGED_FILE_TEXT, StagingArea
from toolbox_core.parser.dictionary import Dictionary

from . import __version__
from .summary import (
    DictionarySummary,
    display_changes,
    display_issues,
    display_workdir_issues,
)

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def _print_error(error: ToolboxError) -> None:
    err_console.print(f"[red]❌ {escape(error.message)}[/red]")
    excerpt = getattr(error, 'excerpt', "")
    if excerpt:
        err_console.print(f"        {escape(excerpt)}")
    if error.hint:
        err_console.print(f"[yellow]💡 {escape(error.hint)}[/yellow]")


def handle_errors(func: Callable) -> Callable:
    """Report ToolboxError on stderr and exit with status 1"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ToolboxError as e:
            logger.debug("Command failed", exc_info=True)
            _print_error(e)
            sys.exit(1)
    return wrapper


def _open_repository() -> Tuple[ToolboxRepository, ToolboxConfig]:
    repo = ToolboxRepository.open()
    return repo, validate_repository(repo)


def _select_dictionaries(repo: ToolboxRepository, config: ToolboxConfig,
                         files: Tuple[str, ...]) -> List[DictionaryConfig]:
    if not files:
        return list(config.dictionaries)
    return [config.dictionary_by_path(repo.relative_path(path)) for path in files]


def _build_summaries(repo: ToolboxRepository, dictionaries: List[DictionaryConfig],
                     abort_message: str, **options) -> List[DictionarySummary]:
    """Summarize every dictionary, reporting all failures before aborting"""
    summaries = []
    errors = []
    for cfg in dictionaries:
        try:
            summaries.append(DictionarySummary.build(repo, cfg, **options))
        except ToolboxError as e:
            errors.append(e)

    if errors:
        for error in errors[:-1]:
            _print_error(error)
        raise ToolboxError(f"{errors[-1].message}\n⚠️  {abort_message}", hint=errors[-1].hint)

    return summaries


def _max_to_show(ctx: click.Context) -> int:
    return ctx.obj.max_to_show


@click.group()
@click.version_option(version=__version__, prog_name="git-toolbox")
@click.pass_context
def main(ctx: click.Context):
    """
    git-toolbox.

    Keep Toolbox dictionaries in git, one file per record.
    """
    settings = ToolboxSettings()
    logging.basicConfig(
        level=settings.log_level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s"
    )
    ctx.obj = settings


@main.command()
@click.option('--init', is_flag=True, help='Write a sample configuration file')
@handle_errors
def setup(init: bool):
    """Configure the repository for the managed dictionaries."""
    repo = ToolboxRepository.open()

    if init:
        ConfigurationLoader(repo).write_example()
        console.print("\n✅  Written a sample configuration file. "
                      "Please edit it and run [bold]\"git toolbox setup\"[/bold] again")
        return

    try:
        configure_repository(repo, notify=lambda msg: console.print(f"[green]✓[/green] {escape(msg)}"))
    except ToolboxError as e:
        raise ToolboxError(f"{e.message}\n\n⚠️  There were errors. Configuration might be incomplete.",
                           hint=e.hint) from e

    console.print("\n✅  Configuration successfully updated")


@main.command()
@click.option('--verbose', '-v', is_flag=True, help='List all changes and issues')
@click.pass_context
@handle_errors
def status(ctx: click.Context, verbose: bool):
    """Show the state of the managed dictionaries."""
    max_to_show = _max_to_show(ctx)
    repo, config = _open_repository()

    summaries = _build_summaries(repo, config.dictionaries, "There were errors. Aborting.",
                                 workdir=True, staged=True)

    console.print(f"On branch {escape(repo.head_display_name())}")

    any_workdir_issues = any(s.any_workdir_issues for s in summaries)
    if any_workdir_issues:
        console.print("\n[bold yellow]warning[/bold yellow]: some files managed by git-toolbox "
                      "were externally modified.")
        console.print("  (these changes will be lost if you run [bold]\"git toolbox stage\"[/bold])")
        console.print("  (if these changes are intended stage them manually using [bold]\"git add ...\"[/bold])")
        console.print("")
        for summary in summaries:
            display_workdir_issues(console, summary, verbose, max_to_show)

    width = max((len(s.display_name) for s in summaries), default=0)

    if any(s.any_staged for s in summaries):
        console.print("Changes to be committed:\n")
        for summary in summaries:
            console.print(f"        [green]{escape(summary.display_name):<{width}}[/green] : "
                          f"{summary.staged_stats.to_markup()}")
        for summary in summaries:
            display_changes(console, summary, verbose, max_to_show, staged=True)
        console.print("")

    console.print("Changes not staged for commit:")
    console.print("  (use [bold]\"git toolbox stage\"[/bold] to stage the Toolbox dictionaries to be committed)")
    console.print("")
    for summary in summaries:
        console.print(f"        {escape(summary.display_name):<{width}} : {summary.unstaged_stats.to_markup()}")
    for summary in summaries:
        display_changes(console, summary, verbose, max_to_show)
    console.print("")

    issue_count = sum(len(s.issues) for s in summaries)
    for summary in summaries:
        display_issues(console, summary, verbose, max_to_show)
    console.print("")

    if issue_count:
        console.print(f"⚠️  There were {issue_count} issues in toolbox dictionaries! "
                      "Please check the list above.")
    if any_workdir_issues:
        console.print("⚠️  Some managed files were externally modified. Please check the list above.")


def _apply_changes(repo: ToolboxRepository, summaries: List[DictionarySummary]) -> DiffStats:
    """Stage the changes of all summaries and write the index once"""
    staging = StagingArea(repo)
    total = sum(len(s.unstaged) for s in summaries)
    stats = DiffStats()

    console.print("Applying changes to the git repository index ...")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task("changes applied", total=total)

        def notify(change: ChangeAction) -> None:
            if change.kind is ChangeKind.ADD:
                stats.added += 1
            elif change.kind is ChangeKind.UPDATE:
                stats.changed += 1
            else:
                stats.deleted += 1
            progress.advance(task)

        for summary in summaries:
            if not summary.any_unstaged:
                continue
            staging.stage_managed_file(summary.path)
            staging.stage_changes(summary.unstaged, notify=notify)

    staging.commit()
    return stats


@main.command()
@click.argument('files', nargs=-1)
@click.option('--verbose', '-v', is_flag=True, help='List all changes and issues')
@click.option('--discard-external-changes', is_flag=True,
              help='Overwrite external modifications to managed files')
@click.pass_context
@handle_errors
def stage(ctx: click.Context, files: Tuple[str, ...], verbose: bool, discard_external_changes: bool):
    """Stage managed dictionaries to be committed."""
    max_to_show = _max_to_show(ctx)
    repo, config = _open_repository()

    summaries = _build_summaries(
        repo, _select_dictionaries(repo, config, files),
        "There were errors. Aborting. No changes to the repository were made",
        strict=True, workdir=True
    )

    any_workdir_issues = any(s.any_workdir_issues for s in summaries)
    if any_workdir_issues:
        console.print("Some files managed by git-toolbox were externally modified.\n")
        for summary in summaries:
            display_workdir_issues(console, summary, verbose, max_to_show)

    if not discard_external_changes:
        lost = [s for s in summaries if s.workdir_changes_will_be_lost]
        if lost:
            for summary in lost[:-1]:
                _print_error(ExternalModificationsWillBeLostError(summary.contents_root))
            raise ToolboxError(
                ExternalModificationsWillBeLostError(lost[-1].contents_root).message,
                hint="use \"git toolbox stage --discard-external-changes ...\" to force discarding "
                     "any external modifications to managed files"
            )

    if not any(s.any_unstaged for s in summaries):
        console.print("✅ No changes detected.")
        return

    for summary in summaries:
        display_changes(console, summary, verbose, max_to_show)

    try:
        stats = _apply_changes(repo, summaries)
    except ToolboxError as e:
        raise ToolboxError(
            f"{e.message}\n\n⚠️  There were critical issues, aborting. Nothing added to be committed, "
            "contents of the managed folders might have changed.",
            hint=e.hint
        ) from e

    console.print(f"[green]✓[/green] Git index successfully updated "
                  f"({stats.added} added, {stats.changed} modified, {stats.deleted} deleted)")

    issue_count = sum(len(s.issues) for s in summaries)
    for summary in summaries:
        display_issues(console, summary, verbose, max_to_show)

    console.print(f"\n✅ Added {sum(1 for s in summaries if s.any_unstaged)} managed toolbox "
                  "dictionaries to be committed.\n")

    if issue_count:
        console.print(f"⚠️  There were {issue_count} issues in toolbox dictionaries! "
                      "Please check the list above and/or run [bold]git toolbox status --verbose[/bold].")
    if any_workdir_issues:
        console.print("⚠️  Some managed files were externally modified.")


@main.command()
@click.argument('files', nargs=-1)
@click.option('--verbose', '-v', is_flag=True, help='List all changes')
@click.option('--force', '-f', is_flag=True, help='Discard changes to the managed dictionaries')
@click.pass_context
@handle_errors
def reset(ctx: click.Context, files: Tuple[str, ...], verbose: bool, force: bool):
    """Restore managed dictionaries from the git index."""
    max_to_show = _max_to_show(ctx)
    repo, config = _open_repository()

    summaries = _build_summaries(
        repo, _select_dictionaries(repo, config, files),
        "There were errors. Aborting. No changes to the working directory were made"
    )
    summaries = [s for s in summaries if s.any_unstaged or s.missing_header]

    if not summaries:
        console.print("✅ Nothing to do.")
        return

    for summary in summaries:
        display_changes(console, summary, verbose, max_to_show)

    if not force:
        cmd = " ".join(["git toolbox reset --force", *files])
        raise ToolboxError(
            "Resetting will discard any changes you have made to the files.",
            hint=f"if you understand this and still wish to proceed, use \"{cmd}\""
        )

    for summary in summaries:
        data = reconstruct(repo, summary.contents_root)
        target = repo.workdir / summary.path
        try:
            target.write_bytes(data)
        except OSError as e:
            raise FileWriteError(target, str(e)) from e

        stats = summary.restore_stats
        console.print(f"[green]✓[/green] Restored {escape(summary.display_name)} from git index "
                      f"({stats.added} added, {stats.changed} modified, {stats.deleted} deleted)")

    console.print(f"\n✅  Reset {len(summaries)} managed toolbox dictionaries.")


def _write_stdout(data: bytes) -> None:
    stdout = sys.stdout.buffer
    stdout.write(data)
    if not data.endswith(b"\n"):
        stdout.write(b"\n")
    stdout.flush()


@main.command()
@click.argument('pathspec')
@click.option('--bare', is_flag=True, help='Use PATH as the contents tree itself')
@handle_errors
def show(pathspec: str, bare: bool):
    """Print a dictionary rebuilt from git ([REV:]PATH, REV defaults to HEAD)."""
    rev, path = parse_path_spec(pathspec)
    repo = ToolboxRepository.open()

    path = repo.relative_path(path)
    root = path if bare else f"{path}.contents"
    _write_stdout(reconstruct(repo, root, rev))


def _clean_report(repo: ToolboxRepository, path: str) -> str:
    """Changes between the managed file on disk and the index, one per line"""
    config = validate_repository(repo)
    cfg = config.dictionary_by_path(repo.relative_path(path))

    dictionary = Dictionary.load(repo, cfg, strict=False)
    changes = ContentDiffEngine(repo).diff(dictionary.contents_root, dictionary.split().objects).changes

    return "".join(f"{change.diff_marker} {change.filename}\n"
                   for change in sorted_changes(changes))


@main.command(hidden=True)
@click.option('--clean', 'clean_path', metavar='FILE', help='Run the clean filter')
@click.option('--smudge', 'smudge_path', metavar='FILE', help='Run the smudge filter')
@handle_errors
def gitfilter(clean_path: str, smudge_path: str):
    """git content filter for managed dictionaries."""
    if bool(clean_path) == bool(smudge_path):
        raise click.UsageError("exactly one of --clean or --smudge is required")

    # git streams the file contents; they are read from disk or the index instead
    sys.stdin.buffer.read()

    repo = ToolboxRepository.open()

    if clean_path:
        if repo.is_index_locked():
            raise UnableToStageManagedFileError(clean_path)
        try:
            report = _clean_report(repo, clean_path)
        except ToolboxError as e:
            logger.warning(f"Unable to compute changes for {clean_path}: {e.message}")
            report = ""
        sys.stdout.buffer.write((report or MANAGED_FILE_TEXT).encode('utf-8'))
        return

    config = validate_repository(repo)
    cfg = config.dictionary_by_path(repo.relative_path(smudge_path))
    _write_stdout(reconstruct(repo, cfg.contents_root))


if __name__ == "__main__":
    main()
