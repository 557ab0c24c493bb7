"""
TaskRunner: Drives a converter over the records of one task
"""

import itertools
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .chain import ConverterChain
from .config import PipelineConfig
from .context import METRICS_RESERVOIR_SIZE_KEY, METRICS_TAG_PREFIX, TaskContext
from .converter import (
    CONVERSION_TIMER,
    RECORDS_FAILED_METER,
    RECORDS_IN_METER,
    RECORDS_OUT_METER,
    Converter,
    ConverterState,
)
from .errors import DataConversionError
from .metrics import MetricsReporter
from .registry import ConverterRegistry


@dataclass
class RunStats:
    input_records: int = 0  # records handed to the converter
    output_records: int = 0  # records delivered to the sink
    failed_records: int = 0  # records rejected with DataConversionError
    duration: float = 0.0  # wall-clock time in seconds
    metrics: dict[str, dict[str, Any]] = field(default_factory=dict)  # per-converter summaries


class TaskRunner:
    """Runs one converter (usually a ConverterChain) over a stream of records.

    Records that fail with DataConversionError are skipped and counted; any
    other exception aborts the run. The converter is closed when the run ends.
    """

    def __init__(
        self,
        converter: Converter,
        context: TaskContext,
        max_records: int | None = None,
        max_failures: int | None = None,
        log_interval: int = 1000,
        report_metrics: bool = True,
    ):
        """Initialize task runner.

        Args:
            converter: Converter to run (initialized by the runner if needed)
            context: Task context for the run
            max_records: Stop after this many input records (None = unlimited)
            max_failures: Abort once more than this many records fail (None = never)
            log_interval: Log progress every N input records
            report_metrics: Log a metrics summary before closing the converter
        """
        self.converter = converter
        self.context = context
        self.max_records = max_records
        self.max_failures = max_failures
        self.log_interval = log_interval
        self.report_metrics = report_metrics

        self.logger = logging.getLogger(f"TaskRunner.{context.task_id}")

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "TaskRunner":
        """Build a runner whose converter chain and task context come from config."""
        properties = dict(config.task.properties)
        for key, value in config.metrics.tags.items():
            properties[f"{METRICS_TAG_PREFIX}{key}"] = value
        properties.setdefault(METRICS_RESERVOIR_SIZE_KEY, config.metrics.reservoir_size)

        context = TaskContext(config.task.task_id, job_name=config.task.job_name, properties=properties)
        converters = [ConverterRegistry.create(c.name, c.params) for c in config.enabled_converters()]
        if not converters:
            raise ValueError("All configured converters are disabled")

        return cls(
            ConverterChain(converters),
            context,
            max_records=config.task.max_records,
            max_failures=config.task.max_failures,
            log_interval=config.task.log_interval,
            report_metrics=config.metrics.report_on_completion,
        )

    def run(
        self,
        records: Iterable[Any],
        input_schema: Any = None,
        sink: Callable[[Any], None] | None = None,
    ) -> RunStats:
        """Convert every record and pass the outputs to sink.

        Args:
            records: Input records
            input_schema: Input schema handed to convert_schema
            sink: Callable receiving each output record (outputs are dropped if None)

        Returns:
            RunStats for the run

        Raises:
            DataConversionError: If more than max_failures records fail
            SchemaConversionError: If the schema cannot be converted
        """
        stats = RunStats()
        start_time = time.perf_counter()

        try:
            if self.converter.state is ConverterState.UNINITIALIZED:
                self.converter.init(self.context)

            output_schema = self.converter.convert_schema(input_schema, self.context)
            self.logger.info(f"Starting task {self.context.task_id} of job {self.context.job_name}")

            if self.max_records is not None:
                records = itertools.islice(records, self.max_records)

            for record in records:
                stats.input_records += 1

                # A record's outputs reach the sink only once all of them converted
                try:
                    outputs = list(self.converter.convert_record(output_schema, record, self.context))
                except DataConversionError as e:
                    stats.failed_records += 1
                    self.logger.debug(f"Skipping record {stats.input_records}: {e}")
                    if self.max_failures is not None and stats.failed_records > self.max_failures:
                        self.logger.error(f"Aborting: {stats.failed_records} records failed conversion")
                        raise
                    outputs = []

                stats.output_records += len(outputs)
                if sink is not None:
                    for output in outputs:
                        sink(output)

                if stats.input_records % self.log_interval == 0:
                    self.logger.info(
                        f"Progress: {stats.input_records} records in, {stats.output_records} out, "
                        f"{stats.failed_records} failed"
                    )

            if self.report_metrics and self.converter.state is ConverterState.INITIALIZED:
                stats.metrics = MetricsReporter(
                    self.context.metric_context,
                    records_in=RECORDS_IN_METER,
                    records_out=RECORDS_OUT_METER,
                    records_failed=RECORDS_FAILED_METER,
                    timer=CONVERSION_TIMER,
                ).report()
        finally:
            self.converter.close()
            stats.duration = time.perf_counter() - start_time

        self.logger.info(
            f"Finished task {self.context.task_id}: {stats.input_records} records in, "
            f"{stats.output_records} out, {stats.failed_records} failed in {stats.duration:.2f}s"
        )
        return stats
