"""
Explode Converter

Turns one record holding a list into one record per list element.
"""

from collections.abc import Iterator
from typing import Any

from datamover.framework import DataConversionError, InstrumentedConverter, TaskContext


class ExplodeConverter(InstrumentedConverter):
    """Emits a copy of the record for each element of a list field.

    Output records are produced lazily, so consumers that stop early never
    build the remaining copies. An empty list produces no records.
    """

    def __init__(self, field: str, target_field: str | None = None, index_field: str | None = None):
        """Initialize explode converter.

        Args:
            field: Field holding the list to explode
            target_field: Field receiving each element (default: field itself)
            index_field: Optional field receiving the element's position
        """
        super().__init__()
        self.field = field
        self.target_field = target_field or field
        self.index_field = index_field

    def convert_schema(self, input_schema: Any, context: TaskContext) -> Any:
        return input_schema

    def convert_record_impl(self, output_schema: Any, input_record: Any, context: TaskContext) -> Iterator[Any]:
        # Validate now so that bad records fail the conversion call itself
        if not isinstance(input_record, dict):
            raise DataConversionError(f"Expected a dict record, got {type(input_record).__name__}")
        values = input_record.get(self.field)
        if not isinstance(values, list | tuple):
            raise DataConversionError(
                f"Field '{self.field}' must be a list, got {type(values).__name__ if values is not None else 'nothing'}"
            )
        return self._explode(input_record, values)

    def _explode(self, record: dict[str, Any], values: list[Any]) -> Iterator[dict[str, Any]]:
        for index, value in enumerate(values):
            output = dict(record)
            output[self.target_field] = value
            if self.index_field is not None:
                output[self.index_field] = index
            yield output
