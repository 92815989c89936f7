"""Deterministic success/failure classification of captured command output."""

from __future__ import annotations

from dataclasses import dataclass

from repair_toolkit.process.base import CommandOutput

CLASSIFIER_VERSION = 1

WINGET_FAILURE_PHRASES: tuple[str, ...] = (
    "The package cannot be upgraded",
    "This package's version number cannot be determined",
    "Installer hash does not match",
    "No available upgrade found",
)


@dataclass(slots=True, frozen=True)
class CommandClassification:
    """Normalized classification result."""

    failed: bool
    reason_code: str
    matched_rule: str
    matched_pattern: str | None
    exit_code: int | None

    def to_details(self) -> dict[str, object]:
        return {
            "classifier_version": CLASSIFIER_VERSION,
            "reason_code": self.reason_code,
            "matched_rule": self.matched_rule,
            "matched_pattern": self.matched_pattern,
            "exit_code": self.exit_code,
        }


def classify_command_output(
    output: CommandOutput,
    *,
    failure_phrases: tuple[str, ...] = (),
    success_exit_codes: tuple[int, ...] = (0,),
) -> CommandClassification:
    """Classify one finished command.

    Rules, first match wins: the process could not run; a known failure phrase
    appears in the text (substring fallback, case-insensitive); the exit code
    is not a success code; otherwise success.
    """

    if output.error is not None:
        return CommandClassification(
            failed=True,
            reason_code="process_error",
            matched_rule="process_error",
            matched_pattern=None,
            exit_code=output.exit_code,
        )

    pattern = _first_match(output.text.lower(), failure_phrases)
    if pattern is not None:
        return CommandClassification(
            failed=True,
            reason_code=_reason_code(pattern),
            matched_rule="known_failure_phrase",
            matched_pattern=pattern,
            exit_code=output.exit_code,
        )

    if output.exit_code is not None and output.exit_code not in success_exit_codes:
        return CommandClassification(
            failed=True,
            reason_code=f"exit_code_{output.exit_code}",
            matched_rule="exit_code",
            matched_pattern=None,
            exit_code=output.exit_code,
        )

    return CommandClassification(
        failed=False,
        reason_code="success",
        matched_rule="success",
        matched_pattern=None,
        exit_code=output.exit_code,
    )


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern.lower() in haystack:
            return pattern
    return None


def _reason_code(phrase: str) -> str:
    words = "".join(char if char.isalnum() else " " for char in phrase.lower()).split()
    return "_".join(words)
