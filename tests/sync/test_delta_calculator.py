"""
Tests for the content diff engine.

Validates change detection against the git index, idempotence and
case-insensitive path identity.
"""

import pytest

from toolbox_core.errors import InvalidManagedPathError
from toolbox_core.models.content import ChangeKind, ContentObject
from toolbox_core.sync.delta_calculator import ContentDiffEngine, staged_changes
from toolbox_core.sync.staging import StagingArea

from conftest import write_file


ROOT = "dic/Test.txt.contents"


def objects(*pairs):
    return [ContentObject(path=path, content=content) for path, content in pairs]


def apply(repo, changes, commit=True):
    staging = StagingArea(repo)
    staging.stage_changes(changes)
    staging.commit()
    if commit:
        repo.repo.index.commit("update contents")


def summary(result):
    return sorted((change.kind.value, change.path) for change in result.changes)


class TestContentDiffEngine:
    """Test ContentDiffEngine.diff"""

    def setup_method(self):
        self.initial = objects(
            ("ap/pl/apple.txt", "\\lx apple\n"),
            ("ba/na/banana.txt", "\\lx banana\n"),
            ("ch/er/cherry.txt", "\\lx cherry\n"),
        )

    def test_all_new(self, toolbox_repo):
        result = ContentDiffEngine(toolbox_repo).diff(ROOT, self.initial)

        assert summary(result) == [
            ("add", f"{ROOT}/ap/pl/apple.txt"),
            ("add", f"{ROOT}/ba/na/banana.txt"),
            ("add", f"{ROOT}/ch/er/cherry.txt"),
        ]
        assert result.stats.added == 3
        assert result.total_index_entries == 0

    def test_idempotent(self, toolbox_repo):
        """Diffing against a tree that already matches yields no changes"""
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, self.initial).changes)

        result = engine.diff(ROOT, self.initial)

        assert result.no_changes
        assert result.unchanged == 3
        assert result.total_index_entries == 3

    def test_removed_record_is_deleted(self, toolbox_repo):
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, self.initial).changes)

        result = engine.diff(ROOT, self.initial[:1] + self.initial[2:])

        assert summary(result) == [("delete", f"{ROOT}/ba/na/banana.txt")]

    def test_modified_record_is_updated(self, toolbox_repo):
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, self.initial).changes)

        changed = self.initial[:2] + objects(("ch/er/cherry.txt", "\\lx cherry\n\\ge red\n"))
        result = engine.diff(ROOT, changed)

        assert summary(result) == [("update", f"{ROOT}/ch/er/cherry.txt")]
        assert result.changes_of_kind(ChangeKind.UPDATE)[0].obj.content == "\\lx cherry\n\\ge red\n"

    def test_deletes_follow_additions(self, toolbox_repo):
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, self.initial[:1]).changes)

        result = engine.diff(ROOT, self.initial[1:])

        assert [change.kind for change in result.changes] == [
            ChangeKind.ADD, ChangeKind.ADD, ChangeKind.DELETE
        ]

    def test_case_insensitive_identity(self, toolbox_repo):
        """A path differing only by case is not deleted"""
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, objects(("Fo/o_/Foo.txt", "\\lx Foo\n"))).changes)

        result = engine.diff(ROOT, objects(("fo/o_/foo.txt", "\\lx Foo\n")))

        assert result.changes_of_kind(ChangeKind.DELETE) == []

    def test_delete_uses_tracked_path(self, toolbox_repo):
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, objects(("Fo/o_/Foo.txt", "\\lx Foo\n"))).changes)

        result = engine.diff(ROOT, [])

        assert summary(result) == [("delete", f"{ROOT}/Fo/o_/Foo.txt")]

    def test_byte_comparison_fallback(self, toolbox_repo, monkeypatch):
        """Different content with a matching hash is still an update"""
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, self.initial[:1]).changes)
        entry = toolbox_repo.index_entry(f"{ROOT}/ap/pl/apple.txt")
        monkeypatch.setattr(toolbox_repo, "hash_content", lambda data: entry.hexsha)

        result = engine.diff(ROOT, objects(("ap/pl/apple.txt", "\\lx apple\n\\ge collision\n")))

        assert summary(result) == [("update", f"{ROOT}/ap/pl/apple.txt")]

    def test_ignores_other_trees_and_files(self, toolbox_repo):
        write_file(toolbox_repo, "other.contents/x.txt", "x\n")
        write_file(toolbox_repo, f"{ROOT}/notes.md", "notes\n")
        toolbox_repo.add_to_index(["other.contents/x.txt", f"{ROOT}/notes.md"])

        result = ContentDiffEngine(toolbox_repo).diff(ROOT, [])

        assert result.no_changes

    def test_invalid_managed_path(self, toolbox_repo):
        write_file(toolbox_repo, f"{ROOT}/a.txt", "a\n")
        toolbox_repo.add_to_index([f"{ROOT}/a.txt"])
        entry = toolbox_repo.index.entries.pop((f"{ROOT}/a.txt", 0))
        toolbox_repo.index.entries[(f"{ROOT}/\udcff.txt", 0)] = entry

        with pytest.raises(InvalidManagedPathError):
            ContentDiffEngine(toolbox_repo).diff(ROOT, [])


class TestStagedChanges:
    """Test listing changes staged for commit"""

    def test_staged_changes(self, toolbox_repo):
        engine = ContentDiffEngine(toolbox_repo)
        initial = objects(("a/__/a.txt", "a\n"), ("b/__/b.txt", "b\n"))
        apply(toolbox_repo, engine.diff(ROOT, initial).changes)

        changes = objects(("a/__/a.txt", "a changed\n"), ("c/__/c.txt", "c\n"))
        apply(toolbox_repo, engine.diff(ROOT, changes).changes, commit=False)

        assert sorted((change.kind.value, change.path) for change in staged_changes(toolbox_repo, ROOT)) == [
            ("add", f"{ROOT}/c/__/c.txt"),
            ("delete", f"{ROOT}/b/__/b.txt"),
            ("update", f"{ROOT}/a/__/a.txt"),
        ]

    def test_nothing_staged(self, toolbox_repo):
        engine = ContentDiffEngine(toolbox_repo)
        apply(toolbox_repo, engine.diff(ROOT, objects(("a/__/a.txt", "a\n"))).changes)

        assert staged_changes(toolbox_repo, ROOT) == []
