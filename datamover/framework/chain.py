"""
ConverterChain: Runs several converters as one

Each output record of converter i is fed to converter i+1. Downstream
converters run lazily, as the chain's output is consumed.
"""

from collections.abc import Iterable, Iterator
from typing import Any

from .context import TaskContext
from .converter import Converter, ConverterState, InstrumentedConverter


class _FlatMapIterable:
    """Re-iterable flat-map of records through one converter."""

    def __init__(self, converter: Converter, output_schema: Any, records: Iterable[Any], context: TaskContext):
        self.converter = converter
        self.output_schema = output_schema
        self.records = records
        self.context = context

    def __iter__(self) -> Iterator[Any]:
        for record in self.records:
            yield from self.converter.convert_record(self.output_schema, record, self.context)


class ConverterChain(InstrumentedConverter):
    """Combines multiple converters into one.

    The chain owns its members: init() initializes them with the chain's task
    context and close() closes them.
    """

    def __init__(self, converters: list[Converter]):
        super().__init__()
        if not converters:
            raise ValueError("ConverterChain requires at least one converter")
        self.converters = converters
        self._schemas: list[Any] | None = None

    def init(self, context: TaskContext) -> "ConverterChain":
        super().init(context)
        try:
            for converter in self.converters:
                self.closer.register(converter)
                converter.init(context)
        except Exception:
            self._state = ConverterState.CLOSED
            self.closer.close()
            raise
        return self

    def convert_schema(self, input_schema: Any, context: TaskContext) -> Any:
        schemas = []
        schema = input_schema
        for converter in self.converters:
            schema = converter.convert_schema(schema, context)
            schemas.append(schema)
        self._schemas = schemas
        return schema

    def convert_record_impl(self, output_schema: Any, input_record: Any, context: TaskContext) -> Iterable[Any]:
        schemas = self._schemas
        if schemas is None:
            # convert_schema was never called: only the final output schema is known
            schemas = [None] * (len(self.converters) - 1) + [output_schema]

        # First converter runs eagerly so its failures surface from this call
        records = self.converters[0].convert_record(schemas[0], input_record, context)
        for converter, schema in zip(self.converters[1:], schemas[1:], strict=True):
            records = _FlatMapIterable(converter, schema, records, context)
        return records
