"""
Registry: Converter registry for dynamic instantiation
"""

from typing import Any

from .converter import Converter


class ConverterRegistry:
    """Registry for converter classes."""

    _converters: dict[str, type[Converter]] = {}

    @classmethod
    def register(cls, name: str, converter_class: type[Converter]):
        """Register a converter class.

        Args:
            name: Converter type name (used in config)
            converter_class: Converter class to register
        """
        cls._converters[name] = converter_class

    @classmethod
    def create(cls, name: str, params: dict[str, Any] | None = None) -> Converter:
        """Create a converter instance from registry.

        Args:
            name: Converter type name
            params: Parameters for converter initialization

        Returns:
            Converter instance (not yet initialized)

        Raises:
            ValueError: If converter name not found in registry
        """
        if name not in cls._converters:
            raise ValueError(
                f"Converter '{name}' not found in registry. Available converters: {list(cls._converters.keys())}"
            )

        params = params or {}
        return cls._converters[name](**params)

    @classmethod
    def list_converters(cls) -> list[str]:
        """List all registered converter names."""
        return list(cls._converters.keys())
