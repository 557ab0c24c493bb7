"""
JSON String Converter

Parses JSON text into Python objects, either the whole record (a str or
bytes) or a single field of a dict record.
"""

import json
from collections.abc import Iterable
from typing import Any

from datamover.framework import DataConversionError, InstrumentedConverter, TaskContext


class JsonStringConverter(InstrumentedConverter):
    """Converter that decodes JSON strings.

    With field=None the record itself must be JSON text and the decoded
    value is emitted. Otherwise the record must be a dict; the decoded value
    of record[field] replaces that field, or is stored under target_field
    when given. Input records are never modified.
    """

    def __init__(self, field: str | None = None, target_field: str | None = None, encoding: str = "utf-8"):
        """Initialize JSON string converter.

        Args:
            field: Dict field holding JSON text (None = whole record is JSON text)
            target_field: Field receiving the decoded value (default: field itself)
            encoding: Encoding used for bytes input
        """
        super().__init__()
        if target_field is not None and field is None:
            raise ValueError("target_field requires field to be set")
        self.field = field
        self.target_field = target_field or field
        self.encoding = encoding

    def convert_schema(self, input_schema: Any, context: TaskContext) -> Any:
        return input_schema

    def convert_record_impl(self, output_schema: Any, input_record: Any, context: TaskContext) -> Iterable[Any]:
        if self.field is None:
            return [self._decode(input_record)]

        if not isinstance(input_record, dict):
            raise DataConversionError(f"Expected a dict record, got {type(input_record).__name__}")
        if self.field not in input_record:
            raise DataConversionError(f"Record has no field '{self.field}'")

        output = dict(input_record)
        output[self.target_field] = self._decode(input_record[self.field])
        return [output]

    def _decode(self, text: Any) -> Any:
        if isinstance(text, bytes):
            try:
                text = text.decode(self.encoding)
            except UnicodeDecodeError as e:
                raise DataConversionError(f"Cannot decode bytes as {self.encoding}: {e}") from e
        if not isinstance(text, str):
            raise DataConversionError(f"Expected JSON text, got {type(text).__name__}")
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise DataConversionError(f"Malformed JSON: {e}") from e
