from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest

from repair_toolkit.updates.exclusions import ExclusionSet, load_exclusions

pytestmark = [
    allure.epic("Program Updates"),
    allure.feature("Exclusions"),
]


def test_exact_match_ignores_case_and_whitespace() -> None:
    exclusions = ExclusionSet.of([" Vendor.Foo "])

    assert exclusions.match("vendor.foo") == "Vendor.Foo"
    assert "VENDOR.FOO" in exclusions
    assert "Vendor.FooBar" not in exclusions


def test_glob_entries_match_whole_ids() -> None:
    exclusions = ExclusionSet.of(["Mozilla.*"])

    assert exclusions.match("mozilla.firefox") == "Mozilla.*"
    assert "Mozilla" not in exclusions
    assert "NotMozilla.Firefox" not in exclusions


def test_substring_lookalikes_are_not_excluded() -> None:
    exclusions = ExclusionSet.of(["Git.Git"])

    assert "Git.GitLFS" not in exclusions
    assert "GitHub.GitHubDesktop" not in exclusions


def test_empty_set_is_falsy_and_matches_nothing() -> None:
    exclusions = ExclusionSet()

    assert not exclusions
    assert len(exclusions) == 0
    assert exclusions.match("Anything") is None


def test_blank_entries_are_dropped() -> None:
    assert len(ExclusionSet.of(["", "  ", "A"])) == 1


def test_load_exclusions_reads_excluded_programs_values(tmp_path: Path) -> None:
    path = tmp_path / "programs.json"
    path.write_text(
        json.dumps({"excludedPrograms": {"values": ["Vendor.One", "Vendor.Two*"]}}),
        "utf-8",
    )

    exclusions = load_exclusions(path, extra=("Extra.Id",))

    assert exclusions.entries == frozenset({"vendor.one", "vendor.two*", "extra.id"})


def test_load_exclusions_missing_file_gives_extra_only(tmp_path: Path) -> None:
    assert load_exclusions(tmp_path / "absent.json") == ExclusionSet()
    assert len(load_exclusions(tmp_path / "absent.json", extra=("A",))) == 1


def test_load_exclusions_rejects_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "programs.json"
    path.write_text("{not json", "utf-8")

    with pytest.raises(ValueError, match="Invalid exclusions file"):
        load_exclusions(path)


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([], "Expected JSON object"),
        ({"excludedPrograms": []}, "excludedPrograms must be an object"),
        ({"excludedPrograms": {"values": "Vendor.One"}}, "list of strings"),
        ({"excludedPrograms": {"values": [1, 2]}}, "list of strings"),
    ],
)
def test_load_exclusions_rejects_wrong_shape(tmp_path: Path, payload, message: str) -> None:
    path = tmp_path / "programs.json"
    path.write_text(json.dumps(payload), "utf-8")

    with pytest.raises(ValueError, match=message):
        load_exclusions(path)


def test_first_spelling_of_an_entry_is_kept() -> None:
    exclusions = ExclusionSet.of(["Vendor.One"]).union(["VENDOR.ONE", "Vendor.Two"])

    assert len(exclusions) == 2
    assert exclusions.match("vendor.one") == "Vendor.One"
    assert exclusions.match("Vendor.Two") == "Vendor.Two"


def test_load_exclusions_reports_unreadable_path(tmp_path: Path) -> None:
    directory = tmp_path / "programs.json"
    directory.mkdir()

    with pytest.raises(ValueError, match="Cannot read exclusions file"):
        load_exclusions(directory)
