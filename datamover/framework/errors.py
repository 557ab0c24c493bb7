"""
Errors: Tagged conversion failures

Conversion failures carry an explicit ErrorKind tag so that instrumentation
can classify them without inspecting the concrete exception type.
"""

from enum import Enum


class ErrorKind(Enum):
    """Kinds of conversion failure."""

    DATA_CONVERSION = "data_conversion"
    SCHEMA_CONVERSION = "schema_conversion"


class ConversionError(Exception):
    """Base class for failures raised by converters."""

    kind: ErrorKind

    def __init__(self, message: str, kind: ErrorKind):
        super().__init__(message)
        self.kind = kind


class DataConversionError(ConversionError):
    """A single record could not be converted."""

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.DATA_CONVERSION)


class SchemaConversionError(ConversionError):
    """The input schema could not be converted to an output schema."""

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.SCHEMA_CONVERSION)
