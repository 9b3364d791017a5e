"""
Shared fixtures: throwaway git repositories with managed dictionaries.
"""

from pathlib import Path

import git
import pytest

from toolbox_config.repo_setup import configure_repository
from toolbox_core.storage.repository import ToolboxRepository


HEADER = "\\_sh v3.0  400  Dictionary\n"

CONFIG_TEXT = """\
[[dictionary]]
name = "Lexical Dictionary"
path = "dic/Lexical.txt"
record-tag = "lx"
unique-id = true
id-tag = "id"
id-spec = "(?P<namespace>[a-z]*)(?P<id>[0-9]+)"

[[dictionary]]
name = "Parsing Dictionary"
path = "dic/Parsing.txt"
record-tag = "lx"
"""

LEXICAL_TEXT = HEADER + """\

\\lx apple
\\id 1
\\ge fruit

\\lx banana
\\id 2
\\ge fruit

\\lx draft
\\id ab7
"""

PARSING_TEXT = HEADER + """\

\\lx foo
\\ge bar

\\lx Baz
\\ge qux
"""


def init_repo(path: Path) -> git.Repo:
    repo = git.Repo.init(path)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
    return repo


def write_file(repo: ToolboxRepository, path: str, text: str) -> Path:
    full_path = repo.workdir / path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_text(text, encoding='utf-8')
    return full_path


def reopen(repo: ToolboxRepository) -> ToolboxRepository:
    """A fresh wrapper reading the index from disk"""
    return ToolboxRepository(git.Repo(repo.workdir))


@pytest.fixture
def git_repo(tmp_path) -> git.Repo:
    return init_repo(tmp_path / "repo")


@pytest.fixture
def toolbox_repo(git_repo) -> ToolboxRepository:
    return ToolboxRepository(git_repo)


@pytest.fixture
def configured_repo(toolbox_repo, monkeypatch) -> ToolboxRepository:
    """Repository with two managed dictionaries, configured and ready"""
    write_file(toolbox_repo, "git-toolbox.toml", CONFIG_TEXT)
    write_file(toolbox_repo, "dic/Lexical.txt", LEXICAL_TEXT)
    write_file(toolbox_repo, "dic/Parsing.txt", PARSING_TEXT)
    configure_repository(toolbox_repo)

    monkeypatch.chdir(toolbox_repo.workdir)
    return reopen(toolbox_repo)
