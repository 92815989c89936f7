from __future__ import annotations

import allure

from repair_toolkit.process.base import CommandOutput
from repair_toolkit.process.failure_classifier import (
    CLASSIFIER_VERSION,
    WINGET_FAILURE_PHRASES,
    classify_command_output,
)

pytestmark = [
    allure.epic("Program Updates"),
    allure.feature("Output Classification"),
]


def test_classifier_version_is_stable() -> None:
    assert CLASSIFIER_VERSION == 1


def test_classifier_prefers_known_phrase_over_exit_code() -> None:
    output = CommandOutput.from_lines(
        ["Found Foo [Vendor.Foo]", "No available upgrade found."],
        exit_code=1,
    )

    classified = classify_command_output(output, failure_phrases=WINGET_FAILURE_PHRASES)

    assert classified.failed
    assert classified.matched_rule == "known_failure_phrase"
    assert classified.matched_pattern == "No available upgrade found"
    assert classified.reason_code == "no_available_upgrade_found"
    assert classified.exit_code == 1


def test_classifier_phrase_match_ignores_case() -> None:
    output = CommandOutput.from_lines(["installer HASH does not match"], exit_code=0)

    classified = classify_command_output(output, failure_phrases=WINGET_FAILURE_PHRASES)

    assert classified.failed
    assert classified.reason_code == "installer_hash_does_not_match"


def test_classifier_fails_on_nonzero_exit_code() -> None:
    output = CommandOutput.from_lines(["Something went sideways"], exit_code=2)

    classified = classify_command_output(output, failure_phrases=WINGET_FAILURE_PHRASES)

    assert classified.failed
    assert classified.matched_rule == "exit_code"
    assert classified.reason_code == "exit_code_2"


def test_classifier_accepts_custom_success_exit_codes() -> None:
    output = CommandOutput.from_lines(["Restart required"], exit_code=3010)

    classified = classify_command_output(output, success_exit_codes=(0, 3010))

    assert not classified.failed
    assert classified.reason_code == "success"


def test_classifier_reports_process_errors_first() -> None:
    output = CommandOutput(exit_code=None, error="start failed: no such file")

    classified = classify_command_output(output, failure_phrases=WINGET_FAILURE_PHRASES)

    assert classified.failed
    assert classified.reason_code == "process_error"


def test_classifier_success_without_phrase_or_bad_exit() -> None:
    output = CommandOutput.from_lines(["Successfully installed"], exit_code=0)

    classified = classify_command_output(output, failure_phrases=WINGET_FAILURE_PHRASES)

    assert not classified.failed
    assert classified.to_details() == {
        "classifier_version": 1,
        "reason_code": "success",
        "matched_rule": "success",
        "matched_pattern": None,
        "exit_code": 0,
    }


def test_unknown_exit_code_alone_is_not_a_failure() -> None:
    classified = classify_command_output(CommandOutput.from_lines(["ok"], exit_code=None))

    assert not classified.failed
