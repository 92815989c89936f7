from __future__ import annotations

import os
from pathlib import Path

import allure
import pytest

from repair_toolkit.config import ExecutorSettings, ProcessSettings, Settings, UpdateSettings

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Environment Settings"),
]


def test_from_env_defaults(clean_env) -> None:
    settings = Settings.from_env()

    assert settings.executor.max_workers == 64
    assert settings.process.shell_argv == ()
    assert settings.process.encoding == "utf-8"
    assert settings.process.async_workers == 8
    assert settings.process.echo_output is False
    assert settings.updates.pause_seconds == 3.0
    assert settings.updates.exclusions_path == Path("programs.json")
    assert settings.updates.extra_exclusions == ()
    settings.validate()


def test_from_env_reads_overrides(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("REPAIR_TOOLKIT_MAX_WORKERS", "4")
    monkeypatch.setenv("REPAIR_TOOLKIT_ASYNC_WORKERS", "2")
    monkeypatch.setenv("REPAIR_TOOLKIT_UPDATE_PAUSE_SECONDS", "0.5")
    monkeypatch.setenv("REPAIR_TOOLKIT_EXCLUSIONS_PATH", "conf/programs.json")
    monkeypatch.setenv("REPAIR_TOOLKIT_EXCLUDED_PROGRAMS", " Vendor.One, ,Vendor.*,Vendor.One ")
    monkeypatch.setenv("REPAIR_TOOLKIT_ECHO_OUTPUT", "yes")

    settings = Settings.from_env()

    assert settings.executor.max_workers == 4
    assert settings.process.async_workers == 2
    assert settings.process.echo_output is True
    assert settings.updates.pause_seconds == 0.5
    assert settings.updates.exclusions_path == Path("conf/programs.json")
    assert settings.updates.extra_exclusions == ("Vendor.One", "Vendor.*")


def test_from_env_explicit_exclusions_path_wins(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("REPAIR_TOOLKIT_EXCLUSIONS_PATH", "env.json")

    settings = Settings.from_env(exclusions_path=Path("cli.json"))

    assert settings.updates.exclusions_path == Path("cli.json")


@pytest.mark.skipif(os.name == "nt", reason="POSIX shell splitting")
def test_from_env_splits_shell_prefix(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("REPAIR_TOOLKIT_SHELL", "/bin/bash -c")

    assert Settings.from_env().process.shell_argv == ("/bin/bash", "-c")


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("REPAIR_TOOLKIT_MAX_WORKERS", "many", "Invalid integer value for REPAIR_TOOLKIT_MAX"),
        ("REPAIR_TOOLKIT_UPDATE_PAUSE_SECONDS", "soon", "Invalid number value"),
        ("REPAIR_TOOLKIT_ECHO_OUTPUT", "maybe", "Invalid boolean value"),
    ],
)
def test_from_env_rejects_unparseable_values(clean_env, monkeypatch, name, value, message) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=message):
        Settings.from_env()


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        (Settings(executor=ExecutorSettings(max_workers=0)), "REPAIR_TOOLKIT_MAX_WORKERS"),
        (Settings(process=ProcessSettings(async_workers=0)), "REPAIR_TOOLKIT_ASYNC_WORKERS"),
        (
            Settings(updates=UpdateSettings(pause_seconds=-1)),
            "REPAIR_TOOLKIT_UPDATE_PAUSE_SECONDS",
        ),
    ],
)
def test_validate_names_offending_variable(settings: Settings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        settings.validate()
