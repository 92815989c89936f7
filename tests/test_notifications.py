from __future__ import annotations

import logging

import allure

from repair_toolkit.notifications import EchoNotifier, LoggingNotifier, NotificationLevel

pytestmark = [
    allure.epic("Program Updates"),
    allure.feature("Notifications"),
]


def test_echo_notifier_tags_non_info_levels() -> None:
    lines: list[str] = []
    notifier = EchoNotifier(lines.append, prefix="> ")

    notifier.notify("Updating program: A")
    notifier.notify("Close Foo", level=NotificationLevel.WARNING)
    notifier.notify("Failed to update program: A", level=NotificationLevel.ERROR)

    assert lines == [
        "> Updating program: A",
        "> [warning] Close Foo",
        "> [error] Failed to update program: A",
    ]


def test_logging_notifier_maps_levels(caplog) -> None:
    notifier = LoggingNotifier()

    with caplog.at_level(logging.INFO, logger="repair_toolkit.notifications"):
        notifier.notify("All programs are up to date.")
        notifier.notify("Close Foo", level=NotificationLevel.WARNING)

    assert [(record.levelno, record.getMessage()) for record in caplog.records] == [
        (logging.INFO, "All programs are up to date."),
        (logging.WARNING, "Close Foo"),
    ]
