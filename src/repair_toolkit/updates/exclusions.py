"""Immutable snapshot of package ids the update run must skip."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from types import MappingProxyType

_GLOB_CHARS = frozenset("*?[")


@dataclass(slots=True, frozen=True)
class ExclusionSet:
    """Exclusion entries, matched exactly or as shell-style globs.

    Matching ignores case. An entry containing ``*``, ``?`` or ``[`` is a
    glob (``Mozilla.*``); any other entry must equal the package id.
    ``patterns`` maps each casefolded entry to the text it was written as.
    """

    patterns: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def of(cls, values: Iterable[str]) -> ExclusionSet:
        return cls().union(values)

    def union(self, values: Iterable[str]) -> ExclusionSet:
        merged = dict(self.patterns)
        for value in values:
            original = value.strip()
            if original:
                merged.setdefault(original.casefold(), original)
        return ExclusionSet(patterns=MappingProxyType(merged))

    @property
    def entries(self) -> frozenset[str]:
        return frozenset(self.patterns)

    def match(self, package_id: str) -> str | None:
        """Return the entry, as written, that excludes ``package_id``."""

        candidate = package_id.strip().casefold()
        if candidate in self.patterns:
            return self.patterns[candidate]
        for entry in sorted(self.patterns):
            if _GLOB_CHARS.intersection(entry) and fnmatchcase(candidate, entry):
                return self.patterns[entry]
        return None

    def __contains__(self, package_id: object) -> bool:
        return isinstance(package_id, str) and self.match(package_id) is not None

    def __len__(self) -> int:
        return len(self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExclusionSet):
            return NotImplemented
        return dict(self.patterns) == dict(other.patterns)

    def __hash__(self) -> int:
        return hash(frozenset(self.patterns.items()))


def load_exclusions(path: Path, *, extra: Iterable[str] = ()) -> ExclusionSet:
    """Read ``{"excludedPrograms": {"values": [...]}}`` plus ``extra`` entries.

    A missing file is an empty list of exclusions.
    """

    extra_set = ExclusionSet.of(extra)
    if not path.exists():
        return extra_set

    try:
        raw = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid exclusions file {path}: {error}") from error
    except (OSError, UnicodeDecodeError) as error:
        raise ValueError(f"Cannot read exclusions file {path}: {error}") from error
    if not isinstance(raw, dict):
        raise ValueError(f"Expected JSON object in {path}")

    section = raw.get("excludedPrograms", {})
    if not isinstance(section, dict):
        raise ValueError("excludedPrograms must be an object")
    values = section.get("values") or []
    if not isinstance(values, list) or not all(isinstance(value, str) for value in values):
        raise ValueError("excludedPrograms.values must be a list of strings")

    return extra_set.union(values)
