"""Command lines for the package manager driven by the update run."""

from __future__ import annotations

from dataclasses import dataclass

from repair_toolkit.process.base import ShellKind
from repair_toolkit.process.failure_classifier import WINGET_FAILURE_PHRASES


@dataclass(slots=True, frozen=True)
class PackageManagerCommands:
    """How to discover and upgrade outdated packages.

    ``upgrade_template`` must contain ``{package_id}``; the id is inserted
    verbatim.
    """

    prerequisites: tuple[str, ...]
    list_outdated: str
    upgrade_template: str
    shell: ShellKind = ShellKind.POWERSHELL
    failure_phrases: tuple[str, ...] = ()
    success_exit_codes: tuple[int, ...] = (0,)

    def __post_init__(self) -> None:
        if "{package_id}" not in self.upgrade_template:
            raise ValueError("upgrade_template must include {package_id}.")

    def upgrade_command(self, package_id: str) -> str:
        return self.upgrade_template.format(package_id=package_id)


WINGET_COMMANDS = PackageManagerCommands(
    prerequisites=(
        "Install-PackageProvider -Name NuGet -Force | Out-Null",
        "Install-Module -Name Microsoft.WinGet.Client -Force -Repository PSGallery | Out-Null",
    ),
    list_outdated=(
        "Get-WinGetPackage -Source winget"
        " | Where-Object IsUpdateAvailable | Select-Object -ExpandProperty Id"
    ),
    upgrade_template=(
        "winget upgrade --id {package_id} --disable-interactivity --silent"
        " --accept-package-agreements --accept-source-agreements"
    ),
    shell=ShellKind.POWERSHELL,
    failure_phrases=WINGET_FAILURE_PHRASES,
)
