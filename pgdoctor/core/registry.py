"""
Check registry.

Holds every known check class keyed by check id and selects the subset
to run from --only / --ignore filters. Selection only reads class
metadata, so it never touches the database.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Type

from .base_checker import Checker
from .models import Category, CheckMetadata

PRESET_ALL = "all"
PRESET_TRIAGE = "triage"

# High-signal checks for a first look at an unfamiliar database
TRIAGE_CHECKS = [
    "invalid-indexes",
    "sequence-health",
    "pk-types",
    "pg-version",
    "cache-efficiency",
    "freeze-age",
]

PRESETS: Dict[str, Optional[List[str]]] = {
    PRESET_ALL: None,
    PRESET_TRIAGE: TRIAGE_CHECKS,
}


class FilterError(ValueError):
    """One or more filters match no check id or category."""

    def __init__(self, invalid: Sequence[str], available: Sequence[str]):
        self.invalid = list(invalid)
        self.available = list(available)
        super().__init__(
            f"Unknown check or category: {', '.join(self.invalid)}. "
            f"Available: {', '.join(self.available)}"
        )


class CheckRegistry:
    """Registry of check classes. Built once per process, read-only during a run."""

    def __init__(self, checks: Iterable[Type[Checker]] = ()):
        self._checks: Dict[str, Type[Checker]] = {}
        for check_class in checks:
            self.register(check_class)

    def register(self, check_class: Type[Checker]) -> None:
        """
        Register a check class.

        Raises:
            TypeError: not a Checker subclass
            ValueError: check id already registered
        """
        if not (isinstance(check_class, type) and issubclass(check_class, Checker)):
            raise TypeError(f"Expected Checker subclass, got {check_class!r}")
        check_id = check_class.metadata().check_id
        if check_id in self._checks:
            raise ValueError(f"Check {check_id!r} is already registered")
        self._checks[check_id] = check_class

    def get(self, check_id: str) -> Type[Checker]:
        if check_id not in self._checks:
            raise KeyError(f"Unknown check: {check_id}. Available: {', '.join(self._checks)}")
        return self._checks[check_id]

    def all_metadata(self) -> List[CheckMetadata]:
        return [c.metadata() for c in self._checks.values()]

    def categories(self) -> List[Category]:
        """Categories that have at least one registered check, in enum order."""
        used = {c.metadata().category for c in self._checks.values()}
        return [cat for cat in Category if cat in used]

    def all_filters(self) -> List[str]:
        """Every valid filter value: check ids followed by category names."""
        return list(self._checks) + [cat.value for cat in Category]

    def normalize_filters(self, filters: Iterable[str]) -> Tuple[List[str], List[str]]:
        """
        Split filters into (valid, invalid).

        "check-id/sub-check" is reduced to "check-id". Valid filters are
        de-duplicated keeping first-seen order.
        """
        category_names = {cat.value for cat in Category}
        valid: List[str] = []
        invalid: List[str] = []

        for raw in filters:
            normalized = raw.strip().split("/", 1)[0]
            if normalized in self._checks or normalized in category_names:
                if normalized not in valid:
                    valid.append(normalized)
            else:
                invalid.append(raw)

        return valid, invalid

    def select(
        self,
        only: Optional[Iterable[str]] = None,
        ignore: Optional[Iterable[str]] = None,
    ) -> List[Type[Checker]]:
        """
        Return the ordered subset of checks to run.

        Args:
            only: check ids or categories to keep (None or empty = all)
            ignore: check ids or categories to drop

        Raises:
            FilterError: any filter names an unknown check or category
        """
        valid_only, invalid_only = self.normalize_filters(only or [])
        valid_ignore, invalid_ignore = self.normalize_filters(ignore or [])

        invalid = invalid_only + invalid_ignore
        if invalid:
            raise FilterError(invalid, self.all_filters())

        selected = []
        for check_class in self._checks.values():
            meta = check_class.metadata()
            keys = {meta.check_id, meta.category.value}
            if valid_only and not keys & set(valid_only):
                continue
            if keys & set(valid_ignore):
                continue
            selected.append(check_class)

        return selected

    def __len__(self) -> int:
        return len(self._checks)

    def __iter__(self) -> Iterator[Type[Checker]]:
        return iter(self._checks.values())

    def __contains__(self, check_id: str) -> bool:
        return check_id in self._checks


def apply_preset(preset: str, only: Sequence[str]) -> List[str]:
    """
    Combine a preset with explicit --only filters.

    With no --only the preset list is used as-is; with both, only filters
    that also belong to the preset are kept.

    Raises:
        KeyError: unknown preset name
    """
    if preset not in PRESETS:
        raise KeyError(f"Unknown preset: {preset}. Available: {', '.join(PRESETS)}")
    preset_checks = PRESETS[preset]
    if preset_checks is None:
        return list(only)
    if not only:
        return list(preset_checks)
    return [f for f in only if f.split("/", 1)[0] in preset_checks]
