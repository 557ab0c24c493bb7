"""
Converters package.

Built-in converter implementations. Converters are automatically registered
when this package is imported.
"""

from datamover.framework import ConverterRegistry

from .arrow_schema import ArrowSchemaConverter
from .explode import ExplodeConverter
from .identity import IdentityConverter
from .json_string import JsonStringConverter

# Register all converters with the framework
ConverterRegistry.register("identity", IdentityConverter)
ConverterRegistry.register("json_string", JsonStringConverter)
ConverterRegistry.register("arrow_schema", ArrowSchemaConverter)
ConverterRegistry.register("explode", ExplodeConverter)

__all__ = [
    "IdentityConverter",
    "JsonStringConverter",
    "ArrowSchemaConverter",
    "ExplodeConverter",
]
