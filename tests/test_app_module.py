"""
Test 10: App Module & Runtime (modules/runtime.py)

Tests the app module, global modules, AppModule.register and the default
runtime helpers.
"""

import pytest

from xinject.config import Settings
from xinject.di.diagnostics import RecordingDiagnosticListener, DIEventType
from xinject.modules import (
    APP_MODULE_ID,
    AppModule,
    ModuleRuntime,
    ProviderModule,
    ProviderToken,
    get_runtime,
    reset_runtime,
)
from xinject.modules.errors import (
    InjectionError,
    ProviderModuleAppImportError,
    ProviderModuleGlobalMarkError,
)
from tests.conftest import Car, Engine


# ============================================================================
# Runtime
# ============================================================================

class TestRuntime:

    def test_get_runtime_is_stable(self, runtime):
        assert get_runtime() is runtime
        assert get_runtime() is get_runtime()

    def test_reset_runtime(self, runtime):
        fresh = reset_runtime()
        assert fresh is not runtime
        assert get_runtime() is fresh

    def test_reset_runtime_with_instance(self):
        custom = ModuleRuntime()
        assert reset_runtime(custom) is custom
        assert get_runtime() is custom

    def test_explicit_runtime(self, runtime):
        other = ModuleRuntime()
        module = ProviderModule.create(id="M", runtime=other)

        assert module.runtime is other
        assert module.internal.container.parent is other.app_module.internal.container

    def test_create_module(self):
        other = ModuleRuntime()
        module = other.create_module(id="M", providers=[Engine])
        assert module.runtime is other

    def test_diagnostics_setting(self):
        runtime = ModuleRuntime(Settings(diagnostics=True))
        assert runtime.diagnostics.enabled is True
        assert ModuleRuntime().diagnostics.enabled is False

    def test_module_containers_share_runtime_diagnostics(self, runtime):
        listener = RecordingDiagnosticListener()
        runtime.diagnostics.add_listener(listener)

        module = ProviderModule.create(id="M", providers=[Engine])
        module.get(Engine)

        registration = listener.of_type(DIEventType.REGISTRATION)
        assert [event.container for event in registration] == ["M"]
        assert listener.of_type(DIEventType.RESOLUTION_SUCCESS)

    @pytest.mark.asyncio
    async def test_runtime_dispose(self):
        other = ModuleRuntime()
        global_module = other.create_module(id="G", is_global=True)

        await other.dispose()

        assert global_module.is_disposed is True
        assert other.app_module.is_disposed is True
        assert other.global_modules == set()


# ============================================================================
# App module
# ============================================================================

class TestAppModule:

    def test_app_module(self, runtime):
        app = runtime.app_module
        assert isinstance(app, AppModule)
        assert app.id == APP_MODULE_ID
        assert app.is_app_module is True
        assert app.internal.container.parent is None

    def test_cannot_import_app_module(self, runtime):
        module = ProviderModule.create(id="M")
        with pytest.raises(ProviderModuleAppImportError) as exc_info:
            module.update.add_import(runtime.app_module)
        assert "The 'AppModule' can't be imported!" in str(exc_info.value)

    def test_app_providers_visible_everywhere(self, runtime):
        runtime.app_module.update.add_provider(ProviderToken(provide="APP_NAME", use_value="garage"))
        module = ProviderModule.create(id="M")
        assert module.get("APP_NAME") == "garage"


# ============================================================================
# Global modules
# ============================================================================

class TestGlobalModules:

    def test_global_module_imported_into_app(self, runtime):
        engine_module = ProviderModule.create(id="EngineModule", is_global=True, providers=[Engine], exports=[Engine])

        assert runtime.app_module.is_importing_module(engine_module) is True
        assert runtime.app_module.is_exporting_module(engine_module) is True
        assert engine_module in runtime.global_modules
        assert engine_module.is_global is True

    def test_global_exports_visible_without_import(self):
        ProviderModule.create(id="EngineModule", is_global=True, providers=[Engine], exports=[Engine])
        car_module = ProviderModule.create(id="CarModule", providers=[Car])

        assert isinstance(car_module.get(Car).engine, Engine)

    def test_global_import_skipped(self):
        engine_module = ProviderModule.create(id="EngineModule", is_global=True, providers=[Engine], exports=[Engine])
        car_module = ProviderModule.create(id="CarModule", imports=[engine_module])

        assert car_module.is_importing_module(engine_module) is False
        assert car_module.has_provider(Engine) is True

    @pytest.mark.asyncio
    async def test_disposed_global_leaves_register(self, runtime):
        engine_module = ProviderModule.create(id="EngineModule", is_global=True, providers=[Engine], exports=[Engine])
        car_module = ProviderModule.create(id="CarModule")

        await engine_module.dispose()

        assert engine_module not in runtime.global_modules
        assert car_module.get(Engine, is_optional=True) is None


# ============================================================================
# Register
# ============================================================================

class TestRegister:

    def test_register(self, runtime):
        engine_module = ProviderModule.create(id="EngineModule", is_global=True, providers=[Engine], exports=[Engine])
        clock = ProviderToken(provide="CLOCK", use_value="utc")

        runtime.app_module.register(imports=[engine_module], providers=[clock, Car], exports=[clock])

        app = runtime.app_module
        assert app.is_registered is True
        assert app.is_exporting_provider(clock) is True
        assert app.is_exporting_provider(Car) is False
        assert isinstance(ProviderModule.create(id="M").get(Car).engine, Engine)

    def test_register_twice(self, runtime):
        runtime.app_module.register()
        with pytest.raises(InjectionError) as exc_info:
            runtime.app_module.register()
        assert "has already been registered" in str(exc_info.value)

    def test_register_non_global_import(self, runtime):
        engine_module = ProviderModule.create(id="EngineModule", providers=[Engine], exports=[Engine])

        with pytest.raises(ProviderModuleGlobalMarkError) as exc_info:
            runtime.app_module.register(imports=[engine_module])

        message = str(exc_info.value)
        assert message.startswith("{ProviderModule.EngineModule} => ")
        assert "Is not marked as `global`" in message
        assert runtime.app_module.is_registered is False

    def test_register_global_blueprint(self, runtime):
        blueprint = ProviderModule.blueprint(
            id="EngineModule",
            is_global=True,
            providers=[Engine],
            exports=[Engine],
            auto_import_into_app_module_when_global=False,
        )

        runtime.app_module.register(imports=[blueprint])

        assert runtime.app_module.is_importing_module("EngineModule") is True
        assert isinstance(ProviderModule.create(id="M").get(Engine), Engine)
