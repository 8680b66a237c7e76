"""
Contract tests — ModuleRegistry and module load order.

Verifies:
- Providers are registered, looked up and overwritten (last writer wins).
- validate_dependencies() reports unsatisfied REQUIRES.
- _resolve_load_order() puts providers before their consumers and never
  drops a module, even with a dependency cycle.
- create_app() wires the real modules through the registry.

Run: pytest tests/test_contracts/test_registry.py -v
"""

import sys
import types
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.app import _discover_modules, _resolve_load_order  # noqa: E402
from core.registry import ModuleRegistry  # noqa: E402


def _fake_module(monkeypatch, name: str, implements=(), requires=()) -> str:
    pkg = f"modules.fake_{name}"
    mod = types.ModuleType(pkg)
    mod.MODULE_ID = f"fake_{name}"
    mod.IMPLEMENTS = list(implements)
    mod.REQUIRES = list(requires)
    monkeypatch.setitem(sys.modules, pkg, mod)
    return pkg


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

class TestProviders:
    def test_register_and_get(self):
        registry = ModuleRegistry()
        client = object()
        registry.register_provider("EmailFunctionClient", client)
        assert registry.get_provider("EmailFunctionClient") is client

    def test_missing_provider_is_none(self):
        assert ModuleRegistry().get_provider("Nope") is None

    def test_last_writer_wins(self):
        registry = ModuleRegistry()
        first, second = object(), object()
        registry.register_provider("Thing", first)
        registry.register_provider("Thing", second)
        assert registry.get_provider("Thing") is second

    def test_providers_view_is_a_copy(self):
        registry = ModuleRegistry()
        registry.register_provider("Thing", 1)
        registry.providers["Other"] = 2
        assert "Other" not in registry.providers


class TestValidateDependencies:
    def test_satisfied(self):
        registry = ModuleRegistry()
        registry.register_provider("EmailFunctionClient", object())
        registry.record_requires("system", ["EmailFunctionClient"])
        assert registry.validate_dependencies() is True

    def test_unsatisfied_is_logged(self, caplog):
        registry = ModuleRegistry()
        registry.record_requires("system", ["EmailFunctionClient"])
        with caplog.at_level("ERROR", logger="shop.registry"):
            assert registry.validate_dependencies() is False
        assert "EmailFunctionClient" in caplog.text


# ---------------------------------------------------------------------------
# Load order
# ---------------------------------------------------------------------------

class TestLoadOrder:
    def test_real_modules_provider_first(self):
        order = [p.split(".")[-1] for p in _resolve_load_order(_discover_modules())]
        assert order.index("email_marketing") < order.index("system")
        assert sorted(order) == [
            "catalog", "customers", "email_marketing", "equipment", "presets", "system", "work_orders",
        ]

    def test_chain(self, monkeypatch):
        a = _fake_module(monkeypatch, "a", requires=["B"])
        b = _fake_module(monkeypatch, "b", implements=["B"], requires=["C"])
        c = _fake_module(monkeypatch, "c", implements=["C"])
        assert _resolve_load_order([a, b, c]) == [c, b, a]

    def test_unknown_requirement_does_not_block(self, monkeypatch):
        a = _fake_module(monkeypatch, "a", requires=["Missing"])
        b = _fake_module(monkeypatch, "b")
        assert _resolve_load_order([a, b]) == [a, b]

    def test_cycle_appended_in_discovery_order(self, monkeypatch, caplog):
        a = _fake_module(monkeypatch, "a", implements=["A"], requires=["B"])
        b = _fake_module(monkeypatch, "b", implements=["B"], requires=["A"])
        c = _fake_module(monkeypatch, "c")
        with caplog.at_level("WARNING", logger="shop.api"):
            order = _resolve_load_order([a, b, c])
        assert order == [c, a, b]
        assert "circular" in caplog.text


# ---------------------------------------------------------------------------
# App wiring
# ---------------------------------------------------------------------------

class TestAppWiring:
    @pytest.fixture()
    def app(self):
        from core.app import create_app
        return create_app(create_tables=False)

    def test_function_client_registered(self, app):
        from modules.email_marketing.functions import EmailFunctionClient
        assert isinstance(app.state.registry.get_provider("EmailFunctionClient"), EmailFunctionClient)
        assert app.state.registry.validate_dependencies() is True

    def test_health_monitor_built(self, app):
        from modules.system.monitor import HealthMonitor
        monitor = app.state.health_monitor
        assert isinstance(monitor, HealthMonitor)
        assert "database" in monitor.checks
        assert not monitor.running

    def test_module_routes_mounted(self, app):
        # Included routers may be nested on newer FastAPI; the schema lists every HTTP path
        paths = set(app.openapi()["paths"]) | {getattr(route, "path", None) for route in app.routes}
        for path in ("/health", "/api/health", "/api/work-orders", "/api/email/campaigns",
                     "/api/catalog/products", "/api/presets/{kind}", "/ws"):
            assert path in paths, path
