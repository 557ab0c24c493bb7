"""
Example: Writing an instrumented converter

Demonstrates a custom converter that only implements convert_record_impl,
an extension point override, and reading the collected metrics.
"""

import logging

from datamover.framework import (
    DataConversionError,
    InstrumentedConverter,
    MetricsReporter,
    TaskContext,
)
from datamover.framework.converter import (
    CONVERSION_TIMER,
    RECORDS_FAILED_METER,
    RECORDS_IN_METER,
    RECORDS_OUT_METER,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


class CsvLineConverter(InstrumentedConverter):
    """Splits "a,b,c" lines into one record per column value."""

    def convert_schema(self, input_schema, context):
        return input_schema

    def convert_record_impl(self, output_schema, input_record, context):
        if not isinstance(input_record, str):
            raise DataConversionError(f"Expected a line of text, got {type(input_record).__name__}")
        return (value.strip() for value in input_record.split(","))

    def on_exception(self, exception):
        super().on_exception(exception)
        logging.getLogger(__name__).warning(f"Rejected record: {exception}")


def main():
    context = TaskContext("example_task", job_name="example")

    with CsvLineConverter().init(context) as converter:
        for line in ["a, b, c", 42, "d"]:
            try:
                values = converter.convert_record(None, line, context)
                print(f"{line!r} -> {list(values)}")
            except DataConversionError:
                pass

        print(f"records in: {converter.records_in.count}")
        print(f"records out: {converter.records_out.count}")
        print(f"records failed: {converter.records_exception.count}")

        MetricsReporter(
            context.metric_context,
            records_in=RECORDS_IN_METER,
            records_out=RECORDS_OUT_METER,
            records_failed=RECORDS_FAILED_METER,
            timer=CONVERSION_TIMER,
        ).report()


if __name__ == "__main__":
    main()
