"""
Test 9: Blueprints (modules/blueprint.py)

Tests blueprint definitions, cloning, materialization on import and the
auto-import of global blueprints into the app module.
"""

import pytest

from xinject.modules import ModuleOptions, ProviderModule, ProviderModuleBlueprint, Token
from tests.conftest import Car, Engine


class TestBlueprint:

    def test_get_definition(self):
        blueprint = ProviderModule.blueprint(id="EngineModule", providers=[Engine], exports=[Engine])

        definition = blueprint.get_definition()

        assert definition["id"] == "EngineModule"
        assert definition["providers"] == [Engine]
        assert definition["exports"] == [Engine]
        assert definition["is_global"] is False

    def test_from_module_options(self):
        blueprint = ProviderModuleBlueprint(ModuleOptions(id="M", providers=[Engine]))
        assert blueprint.providers == [Engine]

    def test_invalid_options(self):
        with pytest.raises(TypeError):
            ProviderModuleBlueprint(["not", "options"])

    def test_update_definition(self):
        blueprint = ProviderModule.blueprint(id="M", providers=[Engine])
        blueprint.update_definition({"id": "M2", "providers": [Car]})

        assert blueprint.id == "M2"
        assert blueprint.providers == [Car]

    def test_clone_is_independent(self):
        blueprint = ProviderModule.blueprint(id="M", providers=[Engine])
        clone = blueprint.clone()

        clone.providers.append(Car)
        clone.update_definition({"id": "Clone", "providers": clone.providers})

        assert blueprint.id == "M"
        assert blueprint.providers == [Engine]
        assert clone.providers == [Engine, Car]

    def test_clone_shares_classes_modules_and_tokens(self):
        token = Token("T")
        dependency = ProviderModule.create(id="Dependency")
        blueprint = ProviderModule.blueprint(id="M", imports=[dependency], providers=[Engine], exports=[token])

        clone = blueprint.clone()

        assert clone.imports[0] is dependency
        assert clone.providers[0] is Engine
        assert clone.exports[0] is token

    def test_to_module_creates_fresh_modules(self):
        blueprint = ProviderModule.blueprint(id="EngineModule", providers=[Engine], exports=[Engine])

        first = blueprint.to_module()
        second = blueprint.to_module()

        assert first is not second
        assert first.get(Engine) is not second.get(Engine)

    def test_imported_blueprint_is_materialized(self):
        blueprint = ProviderModule.blueprint(id="EngineModule", providers=[Engine], exports=[Engine])
        car_module = ProviderModule.create(id="CarModule", imports=[blueprint], providers=[Car], exports=[blueprint])

        assert car_module.is_importing_module("EngineModule") is True
        assert car_module.is_exporting_module("EngineModule") is True
        assert isinstance(car_module.get(Car).engine, Engine)

    def test_add_import_blueprint(self):
        blueprint = ProviderModule.blueprint(id="EngineModule", providers=[Engine], exports=[Engine])
        module = ProviderModule.create(id="M")

        module.update.add_import(blueprint)

        assert isinstance(module.get(Engine), Engine)


class TestGlobalBlueprint:

    def test_auto_import_into_app_module(self, runtime):
        ProviderModule.blueprint(id="EngineModule", is_global=True, providers=[Engine], exports=[Engine])

        module = ProviderModule.create(id="M")

        assert runtime.app_module.is_importing_module("EngineModule") is True
        assert isinstance(module.get(Engine), Engine)

    def test_auto_import_disabled(self, runtime):
        ProviderModule.blueprint(
            id="EngineModule",
            is_global=True,
            providers=[Engine],
            exports=[Engine],
            auto_import_into_app_module_when_global=False,
        )

        module = ProviderModule.create(id="M")

        assert runtime.app_module.is_importing_module("EngineModule") is False
        assert module.get(Engine, is_optional=True) is None

    def test_global_import_skipped_by_importers(self, runtime):
        blueprint = ProviderModule.blueprint(id="EngineModule", is_global=True, providers=[Engine], exports=[Engine])

        module = ProviderModule.create(id="M", imports=[blueprint])

        assert module.definition.imports == ()
        assert isinstance(module.get(Engine), Engine)
