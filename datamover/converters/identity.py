"""
Identity Converter

Passes schemas and records through unchanged. Useful as a placeholder stage
and for measuring framework overhead.
"""

from collections.abc import Iterable
from typing import Any

from datamover.framework import InstrumentedConverter, TaskContext


class IdentityConverter(InstrumentedConverter):
    """Yields each input record unchanged."""

    def convert_schema(self, input_schema: Any, context: TaskContext) -> Any:
        return input_schema

    def convert_record_impl(self, output_schema: Any, input_record: Any, context: TaskContext) -> Iterable[Any]:
        return (input_record,)
