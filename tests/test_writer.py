"""
Tests for output paths, survey writing and backup rotation.
"""

import json
from pathlib import Path

import pytest
from surveyl10n.writer import (
    backup_and_prune,
    backup_base_name,
    default_output_path,
    list_backups,
    prune_backups,
    write_backup,
    write_survey,
)


@pytest.fixture
def surveys_dir(tmp_path):
    d = tmp_path / "surveys"
    d.mkdir()
    (d / "child_survey.json").write_text('{"title": {"default": "Child"}}\n', encoding="utf-8")
    return d


def _seed_backups(backups: Path, base: str, count: int):
    backups.mkdir(parents=True, exist_ok=True)
    names = [f"{base}.backup.2024-01-0{i}_12-00-00" for i in range(1, count + 1)]
    for name in names:
        (backups / name).write_text("{}", encoding="utf-8")
    return names


class TestOutputPath:
    def test_updated_suffix(self):
        assert default_output_path("surveys/child_survey.json") == Path("surveys/child_survey_updated.json")

    def test_inplace(self):
        assert default_output_path("surveys/child_survey.json", inplace=True) == Path("surveys/child_survey.json")


class TestBackups:
    def test_base_name_flattens_relative_path(self, surveys_dir):
        nested = surveys_dir / "nested" / "child.json"
        assert backup_base_name(nested, surveys_dir) == "nested__child.json"

    def test_base_name_outside_root(self, tmp_path, surveys_dir):
        assert backup_base_name(tmp_path / "other.json", surveys_dir) == "other.json"

    def test_write_backup(self, surveys_dir):
        src = surveys_dir / "child_survey.json"
        dest = write_backup(src, surveys_dir / "backups", surveys_dir, timestamp="2024-09-01_12-30-00")
        assert dest.name == "child_survey.json.backup.2024-09-01_12-30-00"
        assert dest.read_text(encoding="utf-8") == src.read_text(encoding="utf-8")

    def test_same_second_does_not_overwrite(self, surveys_dir):
        src = surveys_dir / "child_survey.json"
        first = write_backup(src, surveys_dir / "backups", surveys_dir, timestamp="2024-09-01_12-30-00")
        second = write_backup(src, surveys_dir / "backups", surveys_dir, timestamp="2024-09-01_12-30-00")
        assert first != second
        assert first.exists() and second.exists()

    def test_same_second_backups_sort_in_creation_order(self, surveys_dir):
        """Eleven backups in one second: pruning keeps the three written last."""
        src = surveys_dir / "child_survey.json"
        backups = surveys_dir / "backups"
        written = [write_backup(src, backups, surveys_dir, timestamp="2024-09-01_12-30-00") for _ in range(11)]
        assert written[-1].name.endswith("_10")

        prune_backups(src, backups, surveys_dir, keep=3)
        assert list_backups(src, backups, surveys_dir) == list(reversed(written[-3:]))

    def test_backup_missing_file(self, surveys_dir):
        with pytest.raises(FileNotFoundError):
            write_backup(surveys_dir / "missing.json", surveys_dir / "backups")

    def test_prune_keeps_three_newest(self, surveys_dir):
        """Five backups, retention three: the two oldest go."""
        backups = surveys_dir / "backups"
        names = _seed_backups(backups, "child_survey.json", 5)
        (backups / "other.json.backup.2020-01-01_00-00-00").write_text("{}", encoding="utf-8")

        deleted = prune_backups(surveys_dir / "child_survey.json", backups, surveys_dir, keep=3)

        assert sorted(p.name for p in deleted) == names[:2]
        remaining = [p.name for p in list_backups(surveys_dir / "child_survey.json", backups, surveys_dir)]
        assert remaining == list(reversed(names[2:]))
        assert (backups / "other.json.backup.2020-01-01_00-00-00").exists()

    def test_prune_nothing_to_do(self, surveys_dir):
        backups = surveys_dir / "backups"
        _seed_backups(backups, "child_survey.json", 2)
        assert prune_backups(surveys_dir / "child_survey.json", backups, surveys_dir) == []

    def test_backup_and_prune(self, surveys_dir):
        backups = surveys_dir / "backups"
        _seed_backups(backups, "child_survey.json", 5)
        result = backup_and_prune(surveys_dir / "child_survey.json", backups, surveys_dir, keep=3)
        remaining = list_backups(surveys_dir / "child_survey.json", backups, surveys_dir)
        assert len(remaining) == 3
        assert result.backup_path in remaining
        assert len(result.pruned) == 3


class TestWriteSurvey:
    def test_pretty_and_ordered(self, tmp_path):
        survey = {"z": 1, "title": {"default": "Hi", "es-CO": "¡Hola!"}, "a": [1]}
        path = tmp_path / "out" / "child_updated.json"
        assert write_survey(survey, path) is None
        text = path.read_text(encoding="utf-8")
        assert text.startswith('{\n  "z": 1,\n  "title": {\n    "default": "Hi",')
        assert "¡Hola!" in text
        assert list(json.loads(text).keys()) == ["z", "title", "a"]

    def test_backup_before_overwrite(self, surveys_dir):
        path = surveys_dir / "child_survey.json"
        result = write_survey({"title": {"default": "New"}}, path, backup=True, root_dir=surveys_dir)
        assert result is not None
        assert result.backup_path.parent == (surveys_dir / "backups").resolve()
        assert json.loads(result.backup_path.read_text(encoding="utf-8")) == {"title": {"default": "Child"}}
        assert json.loads(path.read_text(encoding="utf-8")) == {"title": {"default": "New"}}
