"""
Conversion Framework: Instrumented record conversion for data-movement tasks

This package provides the converter interfaces, per-task metric scoping and
the task runner. All public APIs are exported from this module.
"""

# Chain
from .chain import ConverterChain

# Resource handling
from .closer import Closer

# Config classes
from .config import (
    ConverterConfig,
    MetricsConfig,
    PipelineConfig,
    TaskConfig,
)

# Task context
from .context import TaskContext

# Converter classes
from .converter import (
    CONVERSION_TIMER,
    RECORDS_FAILED_METER,
    RECORDS_IN_METER,
    RECORDS_OUT_METER,
    Converter,
    ConverterState,
    InstrumentedConverter,
    InstrumentedIterable,
)

# Errors
from .errors import (
    ConversionError,
    DataConversionError,
    ErrorKind,
    SchemaConversionError,
)
from .instrumented import Instrumented

# Metrics
from .metrics import MetricsReporter

# Registry
from .registry import ConverterRegistry

# Runner
from .runner import RunStats, TaskRunner

# Export all public APIs
__all__ = [
    # Config
    "ConverterConfig",
    "MetricsConfig",
    "TaskConfig",
    "PipelineConfig",
    # Converter
    "Converter",
    "ConverterState",
    "InstrumentedConverter",
    "InstrumentedIterable",
    "ConverterChain",
    "RECORDS_IN_METER",
    "RECORDS_OUT_METER",
    "RECORDS_FAILED_METER",
    "CONVERSION_TIMER",
    # Errors
    "ErrorKind",
    "ConversionError",
    "DataConversionError",
    "SchemaConversionError",
    # Context
    "TaskContext",
    "Instrumented",
    "Closer",
    # Metrics
    "MetricsReporter",
    # Registry
    "ConverterRegistry",
    # Runner
    "TaskRunner",
    "RunStats",
]
