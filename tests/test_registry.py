"""
Тесты реестра проверок, фильтров и пресетов.
"""

import pytest

from pgdoctor.checks import ALL_CHECKS, default_registry
from pgdoctor.core.base_checker import Checker
from pgdoctor.core.models import Category, CheckMetadata, Finding, Report, Severity
from pgdoctor.core.registry import (
    PRESET_ALL,
    PRESET_TRIAGE,
    TRIAGE_CHECKS,
    CheckRegistry,
    FilterError,
    apply_preset,
)


def make_check(check_id: str, category: Category):
    """Собрать минимальный класс проверки."""

    class _Check(Checker):
        METADATA = CheckMetadata(category=category, check_id=check_id, name=check_id, description="")

        async def check(self) -> Report:
            report = self.new_report()
            report.add_finding(Finding(id=check_id, name=check_id, severity=Severity.OK))
            return report

    return _Check


@pytest.fixture
def registry():
    return CheckRegistry([
        make_check("alpha", Category.INDEXES),
        make_check("beta", Category.INDEXES),
        make_check("gamma", Category.SCHEMA),
    ])


def ids(selected):
    return [c.metadata().check_id for c in selected]


class TestRegistration:

    def test_duplicate_id_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.register(make_check("alpha", Category.CONFIGS))

    def test_non_checker_rejected(self, registry):
        with pytest.raises(TypeError):
            registry.register(object)

    def test_lookup(self, registry):
        assert registry.get("beta").metadata().category == Category.INDEXES
        assert "gamma" in registry
        assert len(registry) == 3
        with pytest.raises(KeyError):
            registry.get("missing")

    def test_categories_in_enum_order(self, registry):
        assert registry.categories() == [Category.INDEXES, Category.SCHEMA]

    def test_all_filters_lists_ids_and_categories(self, registry):
        filters = registry.all_filters()
        assert filters[:3] == ["alpha", "beta", "gamma"]
        assert {"indexes", "configs", "vacuum", "schema", "performance", "patterns"} <= set(filters)


class TestSelection:

    def test_no_filters_selects_everything_in_order(self, registry):
        assert ids(registry.select()) == ["alpha", "beta", "gamma"]

    def test_only_by_category(self, registry):
        assert ids(registry.select(only=["indexes"])) == ["alpha", "beta"]

    def test_only_by_id(self, registry):
        assert ids(registry.select(only=["gamma"])) == ["gamma"]

    def test_ignore_after_only(self, registry):
        assert ids(registry.select(only=["indexes"], ignore=["beta"])) == ["alpha"]

    def test_ignore_category(self, registry):
        assert ids(registry.select(ignore=["indexes"])) == ["gamma"]

    def test_known_category_without_checks_selects_nothing(self, registry):
        assert registry.select(only=["vacuum"]) == []

    def test_sub_check_filter_normalized(self, registry):
        assert ids(registry.select(only=["alpha/some-finding"])) == ["alpha"]

    def test_unknown_filters_reported_together(self, registry):
        with pytest.raises(FilterError) as exc_info:
            registry.select(only=["alpha", "nope"], ignore=["also-nope"])
        assert exc_info.value.invalid == ["nope", "also-nope"]
        assert "alpha" in exc_info.value.available

    def test_normalize_deduplicates(self, registry):
        valid, invalid = registry.normalize_filters(["alpha", "alpha/x", " schema ", "zzz"])
        assert valid == ["alpha", "schema"]
        assert invalid == ["zzz"]


class TestPresets:

    def test_all_keeps_only(self):
        assert apply_preset(PRESET_ALL, []) == []
        assert apply_preset(PRESET_ALL, ["indexes"]) == ["indexes"]

    def test_triage_without_only(self):
        assert apply_preset(PRESET_TRIAGE, []) == TRIAGE_CHECKS

    def test_triage_intersects_only(self):
        assert apply_preset(PRESET_TRIAGE, ["pk-types", "index-usage"]) == ["pk-types"]

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            apply_preset("everything", [])


class TestDefaultRegistry:

    def test_contains_all_checks(self):
        registry = default_registry()
        assert len(registry) == len(ALL_CHECKS)
        for check_id in TRIAGE_CHECKS:
            assert check_id in registry

    def test_ids_are_kebab_case(self):
        for meta in default_registry().all_metadata():
            assert meta.check_id == meta.check_id.lower()
            assert " " not in meta.check_id and "_" not in meta.check_id
            assert meta.readme
            assert meta.sql

    def test_fresh_registry_each_call(self):
        assert default_registry() is not default_registry()
