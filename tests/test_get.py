"""
Test 11: Provider Lookups (modules/module.py, modules/container.py)

Tests get/get_many, the provider shapes (class, value, factory, bare
functions), list lookups and the raw internal operations.
"""

import pytest
from typing import Annotated

from xinject.di.core import OnEvent
from xinject.di.decorators import Inject
from xinject.di.errors import AmbiguousProviderError
from xinject.modules import GetManyParam, ProviderModule, ProviderToken, Token
from xinject.modules.errors import ProviderModuleMissingProviderError
from tests.conftest import Car, Engine


HOST = Token("HOST")
PORT = Token("PORT")


class Client:
    def __init__(self, url: Annotated[str, Inject("URL")]):
        self.url = url


def make_url(host, port):
    return f"{host}:{port}"


# ============================================================================
# get
# ============================================================================

class TestGet:

    def test_class_provider(self):
        module = ProviderModule.create(id="M", providers=[Engine, Car])
        car = module.get(Car)
        assert car.engine is module.get(Engine)

    def test_use_class(self):
        class V8Engine(Engine):
            pass

        module = ProviderModule.create(id="M", providers=[ProviderToken(provide=Engine, use_class=V8Engine)])
        assert isinstance(module.get(Engine), V8Engine)

    def test_use_value(self):
        module = ProviderModule.create(id="M", providers=[ProviderToken(provide=HOST, use_value="localhost")])
        assert module.get(HOST) == "localhost"

    def test_use_value_none(self):
        module = ProviderModule.create(id="M", providers=[ProviderToken(provide="NOTHING", use_value=None)])
        assert module.get("NOTHING") is None

    def test_use_factory_with_inject(self):
        module = ProviderModule.create(
            id="M",
            providers=[
                ProviderToken(provide=HOST, use_value="localhost"),
                ProviderToken(provide=PORT, use_value=8080),
                ProviderToken(provide="URL", use_factory=make_url, inject=[HOST, PORT]),
                Client,
            ],
        )

        assert module.get("URL") == "localhost:8080"
        assert module.get(Client).url == "localhost:8080"

    def test_use_factory_optional_inject(self):
        module = ProviderModule.create(
            id="M",
            providers=[
                ProviderToken(provide=HOST, use_value="localhost"),
                ProviderToken(
                    provide="URL",
                    use_factory=make_url,
                    inject=[HOST, GetManyParam(PORT, is_optional=True)],
                ),
            ],
        )
        assert module.get("URL") == "localhost:None"

    def test_use_factory_missing_inject(self):
        module = ProviderModule.create(
            id="M",
            providers=[ProviderToken(provide="URL", use_factory=make_url, inject=[HOST, PORT])],
        )
        with pytest.raises(ProviderModuleMissingProviderError):
            module.get("URL")

    def test_bare_function_provider(self):
        def build_engine() -> Engine:
            return Engine()

        module = ProviderModule.create(id="M", providers=[build_engine])
        assert isinstance(module.get(build_engine), Engine)

    def test_missing_provider(self):
        module = ProviderModule.create(id="M")
        with pytest.raises(ProviderModuleMissingProviderError) as exc_info:
            module.get(HOST)
        assert exc_info.value.provider is HOST
        assert "The [HOST] provider" in str(exc_info.value)

    def test_optional_missing_provider(self):
        module = ProviderModule.create(id="M")
        assert module.get(HOST, is_optional=True) is None

    def test_when_predicate(self):
        module = ProviderModule.create(
            id="M",
            providers=[
                ProviderToken(provide="DB", use_value="primary", when=lambda c: False),
                ProviderToken(provide="DB", use_value="replica"),
            ],
        )
        assert module.get("DB") == "replica"

    def test_activation(self):
        token = ProviderToken(
            provide="NAME",
            use_value="engine",
            on_event=OnEvent(activation=lambda ctx, value: value.title()),
        )
        module = ProviderModule.create(id="M", providers=[token])
        assert module.get("NAME") == "Engine"

    def test_as_list(self):
        module = ProviderModule.create(
            id="M",
            providers=[
                ProviderToken(provide="PLUGIN", use_value="first"),
                ProviderToken(provide="PLUGIN", use_value="second"),
            ],
        )

        assert module.get("PLUGIN", as_list=True) == ["first", "second"]
        with pytest.raises(AmbiguousProviderError):
            module.get("PLUGIN")

    def test_as_list_missing(self):
        module = ProviderModule.create(id="M")
        assert module.get("PLUGIN", as_list=True) == []

    def test_has_provider(self):
        module = ProviderModule.create(id="M", providers=[Engine])
        assert module.has_provider(Engine) is True
        assert module.has_provider(Car) is False


# ============================================================================
# get_many
# ============================================================================

class TestGetMany:

    def test_in_order(self):
        module = ProviderModule.create(
            id="M",
            providers=[
                Engine,
                ProviderToken(provide=HOST, use_value="localhost"),
                ProviderToken(provide=PORT, use_value=8080),
            ],
        )

        host, engine, port = module.get_many(HOST, Engine, PORT)

        assert host == "localhost"
        assert isinstance(engine, Engine)
        assert port == 8080

    def test_params(self):
        module = ProviderModule.create(
            id="M",
            providers=[
                ProviderToken(provide="PLUGIN", use_value="first"),
                ProviderToken(provide="PLUGIN", use_value="second"),
            ],
        )

        plugins, host, port = module.get_many(
            GetManyParam("PLUGIN", as_list=True),
            GetManyParam(HOST, is_optional=True),
            {"provider": PORT, "is_optional": True},
        )

        assert plugins == ["first", "second"]
        assert host is None
        assert port is None

    def test_missing_raises(self):
        module = ProviderModule.create(id="M")
        with pytest.raises(ProviderModuleMissingProviderError):
            module.get_many(HOST)


# ============================================================================
# Internal operations
# ============================================================================

class TestInternals:

    def test_bind_and_get(self):
        module = ProviderModule.create(id="M")
        module.internal.bind(Engine)

        assert module.internal.is_current_bound(Engine) is True
        assert isinstance(module.internal.get(Engine), Engine)
        assert module.definition.providers == ()

    def test_get_all(self):
        module = ProviderModule.create(id="M")
        module.internal.bind(ProviderToken(provide="PLUGIN", use_value=1))
        module.internal.bind(ProviderToken(provide="PLUGIN", use_value=2))
        assert module.internal.get_all("PLUGIN") == [1, 2]

    def test_optional_get(self):
        module = ProviderModule.create(id="M")
        assert module.internal.get(Engine, optional=True) is None

    def test_unbind_all(self):
        module = ProviderModule.create(id="M", providers=[Engine, Car])
        module.internal.unbind_all()
        assert module.internal.is_current_bound(Engine) is False
        assert module.internal.is_current_bound(Car) is False

    def test_is_bound_checks_app_module(self, runtime):
        runtime.app_module.update.add_provider(Engine)
        module = ProviderModule.create(id="M")

        assert module.internal.is_bound(Engine) is True
        assert module.internal.is_current_bound(Engine) is False

    def test_snapshot(self):
        module = ProviderModule.create(id="M", providers=[Engine])
        module.internal.take_snapshot()
        module.internal.unbind(Engine)
        module.internal.bind(Car)

        module.internal.restore_snapshot()

        assert module.internal.is_current_bound(Engine) is True
        assert module.internal.is_current_bound(Car) is False
