"""
Arrow Schema Converter

Projects dict records onto a pyarrow schema: every schema field is looked
up in the record and cast to the field's Arrow type.
"""

from collections.abc import Iterable
from typing import Any

import pyarrow as pa

from datamover.framework import (
    DataConversionError,
    InstrumentedConverter,
    SchemaConversionError,
    TaskContext,
)


class ArrowSchemaConverter(InstrumentedConverter):
    """Converter that conforms dict records to an Arrow schema.

    The output schema is built from the `fields` parameter (field name ->
    Arrow type alias such as "int64", "string", "float64", "bool",
    "timestamp[us]"), or taken from the input schema when it is already a
    pyarrow.Schema.

    Per record:
    - Missing or None values are allowed only for nullable fields
    - Values are cast with Arrow's safe casting (e.g. "12" -> 12, 1.5 -> int64 fails)
    - Fields not in the schema are dropped unless keep_extra_fields is set
    """

    def __init__(
        self,
        fields: dict[str, str] | None = None,
        non_nullable: list[str] | None = None,
        keep_extra_fields: bool = False,
    ):
        """Initialize Arrow schema converter.

        Args:
            fields: Mapping of field name to Arrow type alias
            non_nullable: Names of fields that must be present and non-null
            keep_extra_fields: Keep record fields that are not in the schema
        """
        super().__init__()
        self.fields = fields
        self.non_nullable = set(non_nullable or [])
        self.keep_extra_fields = keep_extra_fields

    def convert_schema(self, input_schema: Any, context: TaskContext) -> pa.Schema:
        if self.fields is None:
            if isinstance(input_schema, pa.Schema):
                return input_schema
            raise SchemaConversionError(
                f"No fields configured and input schema is not a pyarrow.Schema: {type(input_schema).__name__}"
            )

        unknown = self.non_nullable - set(self.fields)
        if unknown:
            raise SchemaConversionError(f"Non-nullable fields not in schema: {sorted(unknown)}")

        arrow_fields = []
        for name, type_alias in self.fields.items():
            try:
                arrow_type = pa.type_for_alias(type_alias)
            except (KeyError, ValueError) as e:
                raise SchemaConversionError(f"Unknown Arrow type '{type_alias}' for field '{name}'") from e
            arrow_fields.append(pa.field(name, arrow_type, nullable=name not in self.non_nullable))
        return pa.schema(arrow_fields)

    def convert_record_impl(
        self, output_schema: pa.Schema, input_record: Any, context: TaskContext
    ) -> Iterable[dict[str, Any]]:
        if not isinstance(output_schema, pa.Schema):
            raise SchemaConversionError("ArrowSchemaConverter requires a pyarrow.Schema as output schema")
        if not isinstance(input_record, dict):
            raise DataConversionError(f"Expected a dict record, got {type(input_record).__name__}")

        output = dict(input_record) if self.keep_extra_fields else {}
        for field in output_schema:
            value = input_record.get(field.name)
            if value is None:
                if not field.nullable:
                    raise DataConversionError(f"Missing value for non-nullable field '{field.name}'")
                output[field.name] = None
                continue
            output[field.name] = self._cast(field, value)
        return [output]

    @staticmethod
    def _cast(field: pa.Field, value: Any) -> Any:
        try:
            return pa.array([value]).cast(field.type).to_pylist()[0]
        except (pa.ArrowException, TypeError, ValueError, OverflowError) as e:
            raise DataConversionError(f"Cannot cast field '{field.name}' value {value!r} to {field.type}: {e}") from e
