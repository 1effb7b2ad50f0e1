"""
Type checks shared by the module graph.
"""

from typing import Any


def is_module(value: Any) -> bool:
    from .module import ProviderModule

    return isinstance(value, ProviderModule)


def is_blueprint(value: Any) -> bool:
    from .blueprint import ProviderModuleBlueprint

    return isinstance(value, ProviderModuleBlueprint)


def is_module_or_blueprint(value: Any) -> bool:
    return is_module(value) or is_blueprint(value)


def is_global(value: Any) -> bool:
    """Whether a module or blueprint is marked as global."""
    if is_module(value):
        return bool(value.options.is_global)
    if is_blueprint(value):
        return bool(value.is_global)
    return False
