from repair_toolkit.updates.commands import WINGET_COMMANDS, PackageManagerCommands
from repair_toolkit.updates.exclusions import ExclusionSet, load_exclusions
from repair_toolkit.updates.sequencer import (
    PackageUpdateResult,
    PackageUpdateStatus,
    UpdateLedger,
    UpdateRunReport,
    UpdateSequencer,
)

__all__ = [
    "WINGET_COMMANDS",
    "ExclusionSet",
    "PackageManagerCommands",
    "PackageUpdateResult",
    "PackageUpdateStatus",
    "UpdateLedger",
    "UpdateRunReport",
    "UpdateSequencer",
    "load_exclusions",
]
