"""
Test 4: Export Proxies (modules/imported.py)

Tests export reachability along re-export chains, nearest-wins traversal,
reactivity to export changes and leak prevention for non-exported imports.
"""

import pytest

from xinject.modules import ProviderModule, ProviderToken, Token
from xinject.modules.errors import ProviderModuleMissingProviderError
from tests.conftest import Car, Engine, Garage


X = Token("X")
Y = Token("Y")


def value(provide, use_value):
    return ProviderToken(provide=provide, use_value=use_value)


# ============================================================================
# Reachability
# ============================================================================

class TestReachability:

    def test_direct_export(self):
        engine_module = ProviderModule.create(id="EngineModule", providers=[Engine], exports=[Engine])
        car_module = ProviderModule.create(id="CarModule", imports=[engine_module], providers=[Car], exports=[Car])

        car = car_module.get(Car)
        assert car.engine is engine_module.get(Engine)

    def test_not_exported_is_not_visible(self):
        engine_module = ProviderModule.create(id="EngineModule", providers=[Engine])
        car_module = ProviderModule.create(id="CarModule", imports=[engine_module])

        with pytest.raises(ProviderModuleMissingProviderError) as exc_info:
            car_module.get(Engine)
        assert "{ProviderModule.CarModule} => The [Engine] provider" in str(exc_info.value)

    def test_optional_default_parameter(self):
        engine_module = ProviderModule.create(id="EngineModule", providers=[Engine], exports=[Engine])
        garage_module = ProviderModule.create(id="GarageModule", imports=[engine_module], providers=[Car, Garage])

        assert garage_module.get(Garage).name == "default"

        garage_module.update.add_provider(value("GARAGE_NAME", "Main St."))
        garage_module.update.remove_provider(Garage)
        garage_module.update.add_provider(Garage)
        assert garage_module.get(Garage).name == "Main St."

    def test_re_export_chain(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B", imports=[a], exports=[a])
        c = ProviderModule.create(id="C", imports=[b], exports=[b])
        d = ProviderModule.create(id="D", imports=[c])

        assert d.get(X) == "x"

    def test_dropping_a_re_export_link_breaks_resolution(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B", imports=[a], exports=[a])
        c = ProviderModule.create(id="C", imports=[b], exports=[b])
        d = ProviderModule.create(id="D", imports=[c])

        b.update.remove_from_exports(a)

        assert d.get(X, is_optional=True) is None
        assert c.get(X, is_optional=True) is None
        assert b.get(X) == "x"

    def test_dropping_the_provider_export_breaks_every_importer(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B", imports=[a], exports=[a])
        c = ProviderModule.create(id="C", imports=[b])

        a.update.remove_from_exports(X)

        assert b.get(X, is_optional=True) is None
        assert c.get(X, is_optional=True) is None
        assert a.get(X) == "x"

    def test_nearest_export_wins(self):
        far = ProviderModule.create(id="Far", providers=[value(X, "far")], exports=[X])
        near = ProviderModule.create(
            id="Near",
            imports=[far],
            providers=[value(X, "near")],
            exports=[X, far],
        )
        importer = ProviderModule.create(id="Importer", imports=[near])

        assert importer.get(X) == "near"

    def test_private_provider_does_not_shadow_re_export(self):
        far = ProviderModule.create(id="Far", providers=[value(X, "far")], exports=[X])
        near = ProviderModule.create(
            id="Near",
            imports=[far],
            providers=[value(X, "near-private")],
            exports=[far],
        )
        importer = ProviderModule.create(id="Importer", imports=[near])

        assert importer.get(X) == "far"
        assert near.get(X) == "near-private"

    def test_local_provider_beats_imported(self):
        exporter = ProviderModule.create(id="Exporter", providers=[value(X, "imported")], exports=[X])
        importer = ProviderModule.create(id="Importer", imports=[exporter], providers=[value(X, "local")])

        assert importer.get(X) == "local"

    def test_instances_are_shared_not_copied(self):
        engine_module = ProviderModule.create(id="EngineModule", providers=[Engine], exports=[Engine])
        first = ProviderModule.create(id="First", imports=[engine_module])
        second = ProviderModule.create(id="Second", imports=[engine_module])

        assert first.get(Engine) is second.get(Engine)


# ============================================================================
# Reactivity
# ============================================================================

class TestReactivity:

    def test_provider_exported_later(self):
        a = ProviderModule.create(id="A")
        b = ProviderModule.create(id="B", imports=[a], exports=[a])
        c = ProviderModule.create(id="C", imports=[b])

        a.update.add_provider(value(X, "x"), True)

        assert b.get(X) == "x"
        assert c.get(X) == "x"

    def test_module_re_exported_later(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B")
        c = ProviderModule.create(id="C", imports=[b])

        b.update.add_import(a, True)

        assert c.get(X) == "x"

    def test_removed_import_drops_proxies(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B", imports=[a], exports=[a])
        c = ProviderModule.create(id="C", imports=[b])

        b.update.remove_import(a)

        assert b.get(X, is_optional=True) is None
        assert c.get(X, is_optional=True) is None

    def test_removed_provider_drops_proxies(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B", imports=[a])

        a.update.remove_provider(X)

        assert b.has_provider(X) is False

    def test_still_reachable_through_another_path(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B", imports=[a], exports=[a])
        c = ProviderModule.create(id="C", imports=[a], exports=[a])
        d = ProviderModule.create(id="D", imports=[b, c])

        b.update.remove_from_exports(a)

        assert d.get(X) == "x"

    def test_rebind_in_exporter_seen_by_importer(self):
        a = ProviderModule.create(id="A", providers=[Engine], exports=[Engine])
        b = ProviderModule.create(id="B", imports=[a])
        before = b.get(Engine)

        a.internal.rebind(Engine)

        assert b.get(Engine) is a.get(Engine)
        assert b.get(Engine) is not before


# ============================================================================
# Leak prevention
# ============================================================================

class TestLeaks:

    def test_bubbled_export_of_non_exported_import_does_not_leak(self):
        a = ProviderModule.create(id="A")
        b = ProviderModule.create(id="B", imports=[a])
        c = ProviderModule.create(id="C", imports=[b])

        a.update.add_provider(value(Y, "y"), True)

        assert b.get(Y) == "y"
        assert c.get(Y, is_optional=True) is None
        assert c.has_provider(Y) is False

    def test_bubbled_module_export_does_not_leak(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B")
        hidden = ProviderModule.create(id="Hidden", imports=[b])
        c = ProviderModule.create(id="C", imports=[hidden])

        b.update.add_import(a, True)

        assert hidden.get(X) == "x"
        assert c.get(X, is_optional=True) is None

    def test_removing_unreachable_export_keeps_reachable_proxy(self):
        a = ProviderModule.create(id="A", providers=[value(X, "x")], exports=[X])
        b = ProviderModule.create(id="B", imports=[a], providers=[value(X, "b")], exports=[X])
        c = ProviderModule.create(id="C", imports=[b])

        a.update.remove_from_exports(X)

        assert c.get(X) == "b"
