"""
Tests for the git-toolbox command-line interface.

Runs the commands with click's CliRunner inside real temporary repositories.
"""

import git
import pytest
from click.testing import CliRunner

from git_toolbox.cli import main
from toolbox_config.defaults import CONFIG_FILE
from toolbox_core.sync.reconstruct import DICTIONARY_HEADER
from toolbox_core.sync.staging import MANAGED_FILE_TEXT

from conftest import LEXICAL_TEXT, PARSING_TEXT, reopen, write_file


APPLE = "dic/Lexical.txt.contents/public/1_/__/1.txt"
FOO = "dic/Parsing.txt.contents/fo/o_/foo.txt"


def commit(repo, message="commit"):
    git.Repo(repo.workdir).index.commit(message)


class TestCommandBase:
    """Shared runner setup"""

    def setup_method(self):
        self.runner = CliRunner()

    def invoke(self, *args, **kwargs):
        return self.runner.invoke(main, list(args), catch_exceptions=False, **kwargs)

    def stage_and_commit(self, repo):
        result = self.invoke("stage")
        assert result.exit_code == 0, result.output
        commit(repo)


class TestMain(TestCommandBase):
    """Test the command group"""

    def test_version(self):
        result = self.invoke("--version")

        assert result.exit_code == 0
        assert "git-toolbox" in result.output
        assert "0.2.0" in result.output

    def test_help_lists_commands(self):
        result = self.invoke("--help")

        assert result.exit_code == 0
        for command in ("setup", "status", "stage", "reset", "show"):
            assert command in result.output
        assert "gitfilter" not in result.output

    def test_outside_repository(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = self.invoke("status")

        assert result.exit_code == 1
        assert "unable to locate the git repository" in result.output


class TestSetupCommand(TestCommandBase):
    """Test git toolbox setup"""

    def test_init_writes_example(self, toolbox_repo, monkeypatch):
        monkeypatch.chdir(toolbox_repo.workdir)

        result = self.invoke("setup", "--init")

        assert result.exit_code == 0
        assert (toolbox_repo.workdir / CONFIG_FILE).exists()

    def test_init_refuses_to_overwrite(self, toolbox_repo, monkeypatch):
        monkeypatch.chdir(toolbox_repo.workdir)
        write_file(toolbox_repo, CONFIG_FILE, "# mine\n")

        result = self.invoke("setup", "--init")

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert (toolbox_repo.workdir / CONFIG_FILE).read_text() == "# mine\n"

    def test_setup_without_config(self, toolbox_repo, monkeypatch):
        monkeypatch.chdir(toolbox_repo.workdir)

        result = self.invoke("setup")

        assert result.exit_code == 1
        assert "is missing" in result.output

    def test_commands_require_setup(self, toolbox_repo, monkeypatch):
        monkeypatch.chdir(toolbox_repo.workdir)
        write_file(toolbox_repo, CONFIG_FILE, "")
        toolbox_repo.add_to_index([CONFIG_FILE])
        toolbox_repo.write_index()

        result = self.invoke("status")

        assert result.exit_code == 1
        assert "needs to be configured" in result.output

    def test_setup(self, configured_repo):
        result = self.invoke("setup")

        assert result.exit_code == 0
        assert "updated git attributes file" in result.output


class TestStageCommand(TestCommandBase):
    """Test git toolbox stage"""

    def test_stage_all(self, configured_repo):
        result = self.invoke("stage")

        assert result.exit_code == 0, result.output
        assert "Git index successfully updated" in result.output

        repo = reopen(configured_repo)
        assert repo.read_staged_file(APPLE) == b"\\lx apple\n\\id 1\n\\ge fruit\n"
        assert repo.read_staged_file(FOO) == b"\\lx foo\n\\ge bar\n"
        assert repo.read_staged_file("dic/Lexical.txt") == MANAGED_FILE_TEXT.encode('utf-8')
        assert repo.index_entry("dic/Lexical.txt").size == len(LEXICAL_TEXT.encode('utf-8'))
        assert (configured_repo.workdir / APPLE).exists()

    def test_stage_is_idempotent(self, configured_repo):
        self.invoke("stage")

        result = self.invoke("stage")

        assert result.exit_code == 0
        assert "No changes detected" in result.output

    def test_stage_single_file(self, configured_repo):
        result = self.invoke("stage", "dic/Parsing.txt")

        assert result.exit_code == 0, result.output
        repo = reopen(configured_repo)
        assert repo.read_staged_file(FOO) is not None
        assert repo.read_staged_file(APPLE) is None

    def test_stage_unmanaged_file(self, configured_repo):
        result = self.invoke("stage", "README.txt")

        assert result.exit_code == 1
        assert "not a managed file" in result.output

    def test_removed_record_is_deleted(self, configured_repo):
        self.stage_and_commit(configured_repo)
        write_file(configured_repo, "dic/Parsing.txt", PARSING_TEXT.replace("\\lx Baz\n\\ge qux\n", ""))

        result = self.invoke("stage")

        assert result.exit_code == 0, result.output
        assert not (configured_repo.workdir / "dic/Parsing.txt.contents/ba").exists()
        assert (configured_repo.workdir / FOO).exists()

    def test_missing_header_is_fatal(self, configured_repo):
        write_file(configured_repo, "dic/Parsing.txt", "\\lx foo\n")

        result = self.invoke("stage")

        assert result.exit_code == 1
        assert "header missing" in result.output
        assert "No changes to the repository were made" in result.output
        assert reopen(configured_repo).read_staged_file(FOO) is None

    def test_external_modification_blocks_staging(self, configured_repo):
        """Staging refuses to overwrite edits made by hand"""
        self.stage_and_commit(configured_repo)
        write_file(configured_repo, APPLE, "edited by hand\n")
        write_file(configured_repo, "dic/Lexical.txt", LEXICAL_TEXT.replace("\\ge fruit\n", "\\ge red fruit\n", 1))

        result = self.invoke("stage")

        assert result.exit_code == 1
        assert "--discard-external-changes" in result.output
        assert (configured_repo.workdir / APPLE).read_text() == "edited by hand\n"

    def test_discard_external_changes(self, configured_repo):
        self.stage_and_commit(configured_repo)
        write_file(configured_repo, APPLE, "edited by hand\n")
        write_file(configured_repo, "dic/Lexical.txt", LEXICAL_TEXT.replace("\\ge fruit\n", "\\ge red fruit\n", 1))

        result = self.invoke("stage", "--discard-external-changes")

        assert result.exit_code == 0, result.output
        assert (configured_repo.workdir / APPLE).read_text() == "\\lx apple\n\\id 1\n\\ge red fruit\n"

    def test_unrelated_external_modification(self, configured_repo):
        """Edits to files the change set does not touch only raise a warning"""
        self.stage_and_commit(configured_repo)
        write_file(configured_repo, FOO, "edited by hand\n")
        write_file(configured_repo, "dic/Lexical.txt", LEXICAL_TEXT + "\n\\lx cherry\n\\id 3\n")

        result = self.invoke("stage")

        assert result.exit_code == 0, result.output
        assert "externally modified" in result.output
        assert (configured_repo.workdir / FOO).read_text() == "edited by hand\n"

    def test_index_locked(self, configured_repo):
        configured_repo.index_lock_path.write_text("")

        result = self.invoke("stage")

        assert result.exit_code == 1
        assert "locked" in result.output


class TestStatusCommand(TestCommandBase):
    """Test git toolbox status"""

    def test_unstaged_changes(self, configured_repo):
        result = self.invoke("status")

        assert result.exit_code == 0, result.output
        assert "Changes not staged for commit" in result.output
        assert "Changes to be committed" not in result.output
        assert "foo.txt" in result.output

    def test_staged_changes(self, configured_repo):
        self.invoke("stage")

        result = self.invoke("status")

        assert result.exit_code == 0, result.output
        assert "Changes to be committed" in result.output
        assert "no changes" in result.output

    def test_issues_reported(self, configured_repo):
        write_file(configured_repo, "dic/Parsing.txt", PARSING_TEXT + "\n\\lx foo\nstray line\n")

        result = self.invoke("status")

        assert result.exit_code == 0
        assert "untagged line" in result.output

    def test_listing_is_truncated(self, configured_repo, monkeypatch):
        monkeypatch.setenv("GIT_TOOLBOX_MAX_TO_SHOW", "1")

        short = self.invoke("status")
        full = self.invoke("status", "--verbose")

        assert "other changes" in short.output
        assert "other changes" not in full.output
        assert "baz.txt" in full.output

    def test_external_modifications_listed(self, configured_repo):
        self.stage_and_commit(configured_repo)
        write_file(configured_repo, FOO, "edited by hand\n")

        result = self.invoke("status")

        assert result.exit_code == 0
        assert "modified in working directory" in result.output


class TestResetCommand(TestCommandBase):
    """Test git toolbox reset"""

    def test_requires_force(self, configured_repo):
        self.stage_and_commit(configured_repo)
        write_file(configured_repo, "dic/Parsing.txt", "edited\n")

        result = self.invoke("reset")

        assert result.exit_code == 1
        assert "--force" in result.output
        assert (configured_repo.workdir / "dic/Parsing.txt").read_text() == "edited\n"

    def test_force_restores_from_index(self, configured_repo):
        self.stage_and_commit(configured_repo)
        write_file(configured_repo, "dic/Parsing.txt", "edited\n")

        result = self.invoke("reset", "--force", "dic/Parsing.txt")

        assert result.exit_code == 0, result.output
        restored = (configured_repo.workdir / "dic/Parsing.txt").read_bytes()
        assert restored == DICTIONARY_HEADER + b"\n\\lx Baz\n\\ge qux\n\n\\lx foo\n\\ge bar\n"
        assert (configured_repo.workdir / "dic/Lexical.txt").read_text() == LEXICAL_TEXT

    def test_nothing_to_reset(self, configured_repo):
        self.stage_and_commit(configured_repo)

        result = self.invoke("reset", "--force")

        assert result.exit_code == 0
        assert "Nothing to do" in result.output


@pytest.mark.filterwarnings("error::DeprecationWarning:git_toolbox.cli")
class TestShowCommand(TestCommandBase):
    """Test git toolbox show"""

    def test_show_head(self, configured_repo):
        self.stage_and_commit(configured_repo)

        result = self.invoke("show", "dic/Parsing.txt")

        assert result.exit_code == 0, result.output
        assert result.stdout_bytes.startswith(DICTIONARY_HEADER)
        assert b"\\lx foo\n\\ge bar\n" in result.stdout_bytes

    def test_show_index(self, configured_repo):
        self.invoke("stage")

        result = self.invoke("show", ":dic/Parsing.txt")

        assert result.exit_code == 0, result.output
        assert b"\\lx Baz" in result.stdout_bytes

    def test_show_bare_path(self, configured_repo):
        self.stage_and_commit(configured_repo)

        result = self.invoke("show", "--bare", "HEAD:dic/Parsing.txt.contents/fo")

        assert result.exit_code == 0, result.output
        assert b"\\lx foo" in result.stdout_bytes
        assert b"\\lx Baz" not in result.stdout_bytes

    def test_show_unknown_revision(self, configured_repo):
        self.stage_and_commit(configured_repo)

        result = self.invoke("show", "nope:dic/Parsing.txt")

        assert result.exit_code == 1
        assert "invalid git revision" in result.output


@pytest.mark.filterwarnings("error::DeprecationWarning:git_toolbox.cli")
class TestGitFilter(TestCommandBase):
    """Test the clean and smudge filters"""

    def test_requires_one_mode(self, configured_repo):
        result = self.runner.invoke(main, ["gitfilter"])
        assert result.exit_code == 2

    def test_clean_unchanged(self, configured_repo):
        self.invoke("stage")

        result = self.invoke("gitfilter", "--clean", "dic/Parsing.txt", input=PARSING_TEXT)

        assert result.exit_code == 0
        assert result.stdout_bytes == MANAGED_FILE_TEXT.encode('utf-8')

    def test_clean_reports_changes(self, configured_repo):
        self.invoke("stage")
        write_file(configured_repo, "dic/Parsing.txt", PARSING_TEXT + "\n\\lx zed\n\\lx abc\n")

        result = self.invoke("gitfilter", "--clean", "dic/Parsing.txt", input="")

        assert result.exit_code == 0
        assert result.stdout_bytes == b"added    abc.txt\nadded    zed.txt\n"

    def test_clean_refuses_when_index_locked(self, configured_repo):
        configured_repo.index_lock_path.write_text("")

        result = self.invoke("gitfilter", "--clean", "dic/Parsing.txt", input="")

        assert result.exit_code == 1
        assert "cannot be staged manually" in result.output

    def test_smudge(self, configured_repo):
        self.invoke("stage")

        result = self.invoke("gitfilter", "--smudge", "dic/Parsing.txt", input=MANAGED_FILE_TEXT)

        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == DICTIONARY_HEADER + b"\n\\lx Baz\n\\ge qux\n\n\\lx foo\n\\ge bar\n"
