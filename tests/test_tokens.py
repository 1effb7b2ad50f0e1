"""
Test 14: Provider Tokens (modules/tokens.py, modules/helpers.py)

Tests identifier detection, token kinds, string conversion and equality.
"""

import copy
import pytest

from xinject.modules import ProviderModule, ProviderToken, Token
from xinject.modules.helpers import is_blueprint, is_global, is_module, is_module_or_blueprint
from xinject.modules.tokens import (
    is_class_token,
    is_factory_token,
    is_provider_identifier,
    is_value_token,
    provider_identifier_to_string,
    provider_token_to_string,
    provider_tokens_are_equal,
    to_provider_identifier,
)
from tests.conftest import Car, Engine


def build():
    return Engine()


class TestToken:

    def test_identity(self):
        assert Token("A") != Token("A")
        token = Token("A")
        assert token == token

    def test_str_and_repr(self):
        token = Token("API_URL")
        assert str(token) == "API_URL"
        assert repr(token) == "Token(API_URL)"

    def test_deepcopy_keeps_identity(self):
        token = Token("A")
        assert copy.deepcopy([token])[0] is token


class TestProviderToken:

    def test_kinds(self):
        assert ProviderToken(provide=Engine, use_class=Engine).kind == "class"
        assert ProviderToken(provide="V", use_value=None).kind == "value"
        assert ProviderToken(provide="F", use_factory=build).kind == "factory"
        assert ProviderToken(provide="N").kind is None
        assert ProviderToken(provide="N", use_value=1, use_class=Engine).kind is None

    def test_kind_helpers(self):
        class_token = ProviderToken(provide=Engine, use_class=Engine)
        value_token = ProviderToken(provide="V", use_value=1)
        factory_token = ProviderToken(provide="F", use_factory=build)

        assert is_class_token(class_token) and not is_class_token(Engine)
        assert is_value_token(value_token) and not is_value_token(class_token)
        assert is_factory_token(factory_token) and not is_factory_token(build)

    def test_repr(self):
        assert repr(ProviderToken(provide="V", use_value=1)) == "ProviderToken(V, value)"


class TestHelpers:

    def test_is_provider_identifier(self):
        assert is_provider_identifier("NAME")
        assert is_provider_identifier(Token("T"))
        assert is_provider_identifier(Engine)
        assert is_provider_identifier(build)
        assert not is_provider_identifier(42)
        assert not is_provider_identifier(ProviderToken(provide="V", use_value=1))

    def test_to_provider_identifier(self):
        assert to_provider_identifier(Engine) is Engine
        assert to_provider_identifier(ProviderToken(provide="V", use_value=1)) == "V"

    def test_to_string(self):
        assert provider_identifier_to_string(Engine) == "Engine"
        assert provider_identifier_to_string(Token("T")) == "T"
        assert provider_identifier_to_string(build) == "build"
        assert provider_token_to_string(ProviderToken(provide=Car, use_class=Car)) == "Car"

    def test_tokens_are_equal(self):
        first = ProviderToken(provide="V", use_value=1)
        same_value = ProviderToken(provide="V", use_value=1)
        other_value = ProviderToken(provide="V", use_value=[1])

        assert provider_tokens_are_equal(first, first)
        assert provider_tokens_are_equal(first, same_value)
        assert not provider_tokens_are_equal(first, other_value)
        assert not provider_tokens_are_equal(first, ProviderToken(provide="W", use_value=1))
        assert provider_tokens_are_equal(Engine, ProviderToken(provide=Engine, use_class=Car))
        assert not provider_tokens_are_equal(
            ProviderToken(provide=Engine, use_class=Engine),
            ProviderToken(provide=Engine, use_class=Car),
        )

    def test_module_checks(self):
        module = ProviderModule.create(id="M", is_global=True)
        blueprint = ProviderModule.blueprint(id="B", auto_import_into_app_module_when_global=False)

        assert is_module(module) and not is_module(blueprint)
        assert is_blueprint(blueprint) and not is_blueprint(module)
        assert is_module_or_blueprint(module) and is_module_or_blueprint(blueprint)
        assert not is_module_or_blueprint(Engine)
        assert is_global(module) is True
        assert is_global(blueprint) is False
        assert is_global(Engine) is False
