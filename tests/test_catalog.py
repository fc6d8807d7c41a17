"""Tests for the rule catalog and the check registry."""

import threading

import pytest

from queryaudit.catalog import (
    BUILTIN_RULES,
    Check,
    CheckRegistry,
    RuleCatalog,
    build_catalog,
    get_catalog,
    get_check_registry,
    load_catalog,
)
from queryaudit.catalog.checks import OKCheck
from queryaudit.config import Config
from queryaudit.exceptions import CatalogError
from queryaudit.models import RuleMetadata


def make_rule(item: str, check_id: str = "ok", **kwargs) -> RuleMetadata:
    return RuleMetadata(item=item, severity="L1", summary=item, check_id=check_id, **kwargs)


@pytest.fixture
def restore_catalog():
    """Put the default catalog back after a test swaps it."""
    yield
    load_catalog(Config())


class TestBuiltinCatalog:
    """Tests for the default catalog."""

    def test_contains_every_builtin_rule(self):
        catalog = build_catalog(Config())

        assert len(catalog) == len(BUILTIN_RULES)
        for rule in BUILTIN_RULES:
            assert rule.item in catalog

    def test_lookup(self):
        catalog = build_catalog(Config())

        meta = catalog.lookup("COL.001")
        assert meta is not None
        assert meta.severity == "L1"
        assert catalog.lookup("XYZ.001") is None

    def test_list_all_sorted(self):
        items = [rule.item for rule in build_catalog(Config()).list_all()]

        assert items == sorted(items)

    def test_every_rule_has_a_check(self):
        catalog = build_catalog(Config())

        for rule in catalog.list_all():
            assert isinstance(catalog.check_for(rule.item), Check)

    def test_error_rules_have_empty_content(self):
        catalog = build_catalog(Config())

        for item in ("ERR.000", "ERR.001", "ERR.002"):
            assert catalog.lookup(item).content == ""

    def test_checks_share_config(self):
        config = Config(max_in_count=3)
        catalog = build_catalog(config)

        assert catalog.check_for("ARG.005").config is config


class TestCatalogIntegrity:
    """Tests for construction-time failures."""

    def test_duplicate_item(self):
        with pytest.raises(CatalogError) as exc_info:
            build_catalog(Config(), rules=[make_rule("COL.001"), make_rule("COL.001")])

        assert exc_info.value.item == "COL.001"

    def test_malformed_item(self):
        with pytest.raises(CatalogError):
            build_catalog(Config(), rules=[make_rule("col.1")])

    def test_unknown_check(self):
        with pytest.raises(CatalogError) as exc_info:
            build_catalog(Config(), rules=[make_rule("COL.001", check_id="missing")])

        assert "missing" in exc_info.value.message

    def test_constructor_rejects_unbound_check(self):
        with pytest.raises(CatalogError):
            RuleCatalog([make_rule("COL.001", check_id="ok")], checks={})

    def test_conflict_table_from_metadata(self):
        catalog = build_catalog(
            Config(),
            rules=[make_rule("ARG.003", superseded_by=("IDX.001",)), make_rule("COL.001")],
        )

        assert catalog.conflict_table() == {"ARG.003": ("IDX.001",)}


class TestCheckRegistry:
    """Tests for registering checks."""

    def test_private_registry(self):
        registry = CheckRegistry()

        @registry.register
        class Always(Check):
            check_id = "always"

            def evaluate(self, subject, rule):
                return rule.to_verdict()

        catalog = build_catalog(Config(), rules=[make_rule("TBL.001", "always")], registry=registry)

        assert len(registry) == 1
        assert "always" in registry
        assert isinstance(catalog.check_for("TBL.001"), Always)

    def test_duplicate_check_id(self):
        registry = CheckRegistry()
        registry.register(OKCheck)

        with pytest.raises(ValueError, match="already registered"):
            registry.register(OKCheck)

    def test_missing_check_id(self):
        class Anonymous(OKCheck):
            check_id = ""

        with pytest.raises(ValueError):
            CheckRegistry().register(Anonymous)

    def test_unregister(self):
        registry = CheckRegistry()
        registry.register(OKCheck)

        assert registry.unregister("ok")
        assert not registry.unregister("ok")
        assert registry.get("ok") is None

    def test_global_registry_has_builtins(self):
        registry = get_check_registry()

        for check_id in ("ok", "external", "syntax_error", "select_star", "union_distinct"):
            assert check_id in registry


class TestCurrentCatalog:
    """Tests for the process-wide catalog."""

    def test_get_catalog_returns_same_instance(self):
        assert get_catalog() is get_catalog()

    def test_load_catalog_swaps_snapshot(self, restore_catalog):
        before = get_catalog()
        replaced = load_catalog(Config(), rules=[make_rule("OK")])

        assert get_catalog() is replaced
        assert replaced is not before
        assert len(replaced) == 1
        assert "COL.001" in before

    def test_failed_reload_keeps_previous(self, restore_catalog):
        before = get_catalog()

        with pytest.raises(CatalogError):
            load_catalog(Config(), rules=[make_rule("COL.001"), make_rule("COL.001")])

        assert get_catalog() is before

    def test_readers_see_complete_catalogs(self, restore_catalog):
        sizes: list[int] = []

        def read():
            for _ in range(50):
                sizes.append(len(get_catalog().list_all()))

        readers = [threading.Thread(target=read) for _ in range(4)]
        for thread in readers:
            thread.start()
        for _ in range(10):
            load_catalog(Config(), rules=[make_rule("OK")])
            load_catalog(Config())
        for thread in readers:
            thread.join()

        assert set(sizes) <= {1, len(BUILTIN_RULES)}
