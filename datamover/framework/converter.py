"""
Converter: Abstract interface for record conversion

Defines the Converter base class and InstrumentedConverter, which wraps every
conversion with records-in/out/failed meters and a conversion timer.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Any, final

from .closer import Closer
from .context import TaskContext
from .errors import DataConversionError, ErrorKind
from .instrumented import Instrumented
from .metrics import Meter, MetricContext, Timer

logger = logging.getLogger(__name__)

# Instrument names (kept stable for dashboards)
RECORDS_IN_METER = "datamover.converter.records.in"
RECORDS_OUT_METER = "datamover.converter.records.out"
RECORDS_FAILED_METER = "datamover.converter.records.failed"
CONVERSION_TIMER = "datamover.converter.conversion.time"


class ConverterState(Enum):
    """Lifecycle of a converter: UNINITIALIZED -> INITIALIZED -> CLOSED."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    CLOSED = "closed"


class Converter(ABC):
    """Base class for all converters.

    A converter turns an input schema into an output schema once per task,
    and each input record into zero or more output records.
    """

    def __init__(self):
        self.context: TaskContext | None = None
        self._state = ConverterState.UNINITIALIZED

    @property
    def state(self) -> ConverterState:
        return self._state

    def init(self, context: TaskContext) -> "Converter":
        """Bind the converter to a task.

        Args:
            context: Task context, valid for the converter's whole lifetime

        Returns:
            The converter itself
        """
        if context is None:
            raise ValueError(f"{type(self).__name__}.init() requires a task context")
        if self._state is not ConverterState.UNINITIALIZED:
            raise RuntimeError(f"{type(self).__name__} cannot be initialized from state {self._state.value}")
        self.context = context
        self._state = ConverterState.INITIALIZED
        return self

    @abstractmethod
    def convert_schema(self, input_schema: Any, context: TaskContext) -> Any:
        """Convert the input schema to the output schema.

        Raises:
            SchemaConversionError: If the schema cannot be converted
        """
        pass

    @abstractmethod
    def convert_record(self, output_schema: Any, input_record: Any, context: TaskContext) -> Iterable[Any]:
        """Convert one input record into zero or more output records.

        Raises:
            DataConversionError: If the record cannot be converted
        """
        pass

    def close(self):
        """Release resources held by the converter."""
        self._state = ConverterState.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class InstrumentedIterable:
    """Lazy view of an iterable that reports every element handed out.

    Each call to iter() starts a fresh traversal of the underlying iterable,
    so a re-iterable result stays re-iterable and every traversal is counted.
    Elements are reported when pulled, never ahead of time.
    """

    def __init__(self, iterable: Iterable[Any], on_next: Callable[[Any], None]):
        self._iterable = iterable
        self._on_next = on_next

    def __iter__(self) -> Iterator[Any]:
        for element in self._iterable:
            self._on_next(element)
            yield element

    def __repr__(self) -> str:
        return f"InstrumentedIterable({self._iterable!r})"


class InstrumentedConverter(Converter):
    """Converter that automatically captures conversion metrics.

    Subclasses implement convert_record_impl instead of convert_record and may
    customize bookkeeping through before_convert, after_convert,
    on_iterable_next and on_exception. convert_record itself cannot be
    overridden.

    Metrics (scoped to the task and the concrete converter class):
    - records_in: marked once per convert_record call
    - records_out: marked once per output record pulled by a consumer
    - records_exception: marked once per call failing with a data conversion error
    - converter_timer: duration of each convert_record_impl call (not of consuming its output)
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "convert_record" in cls.__dict__:
            raise TypeError(
                f"{cls.__name__} must not override convert_record; implement convert_record_impl instead"
            )

    def __init__(self):
        super().__init__()
        self.instrumented: Instrumented | None = None
        self.records_in: Meter | None = None
        self.records_out: Meter | None = None
        self.records_exception: Meter | None = None
        self.converter_timer: Timer | None = None
        self.closer = Closer()

    def init(self, context: TaskContext) -> "InstrumentedConverter":
        converter = super().init(context)

        try:
            self.instrumented = self.closer.register(Instrumented(context, type(self)))
            metric_context = self.instrumented.get_context()
            self.records_in = metric_context.new_counter(RECORDS_IN_METER)
            self.records_out = metric_context.new_counter(RECORDS_OUT_METER)
            self.records_exception = metric_context.new_counter(RECORDS_FAILED_METER)
            self.converter_timer = metric_context.new_timer(CONVERSION_TIMER)
        except Exception:
            self._state = ConverterState.CLOSED
            self.closer.close()
            raise

        logger.debug(f"Initialized {type(self).__name__} for task {context.task_id}")
        return converter

    @property
    def metric_context(self) -> MetricContext | None:
        return self.instrumented.get_context() if self.instrumented else None

    @final
    def convert_record(self, output_schema: Any, input_record: Any, context: TaskContext) -> Iterable[Any]:
        if self._state is not ConverterState.INITIALIZED:
            raise RuntimeError(f"{type(self).__name__}.convert_record() called in state {self._state.value}")

        try:
            self.before_convert(output_schema, input_record, context)
            start_time = time.perf_counter()
            iterable = self.convert_record_impl(output_schema, input_record, context)
            self.after_convert(iterable, start_time)
        except DataConversionError as exception:
            self.on_exception(exception)
            raise

        return InstrumentedIterable(iterable, self.on_iterable_next)

    def before_convert(self, output_schema: Any, input_record: Any, context: TaskContext):
        """Called before conversion."""
        self.records_in.mark()

    def after_convert(self, iterable: Iterable[Any], start_time: float):
        """Called after conversion.

        Args:
            iterable: Conversion result (not yet consumed)
            start_time: time.perf_counter() value taken just before conversion
        """
        self.converter_timer.update(time.perf_counter() - start_time)

    def on_iterable_next(self, next_record: Any):
        """Called every time a consumer pulls a record from the conversion result."""
        self.records_out.mark()

    def on_exception(self, exception: DataConversionError):
        """Called when conversion raises a DataConversionError (before it is re-raised)."""
        if exception.kind is ErrorKind.DATA_CONVERSION:
            self.records_exception.mark()

    @abstractmethod
    def convert_record_impl(self, output_schema: Any, input_record: Any, context: TaskContext) -> Iterable[Any]:
        """Convert one input record; subclasses implement this instead of convert_record.

        Raises:
            DataConversionError: If the record cannot be converted
        """
        pass

    def close(self):
        """Release every metric scope registered during init."""
        if self._state is ConverterState.CLOSED:
            return
        try:
            self.closer.close()
        finally:
            super().close()
            logger.debug(f"Closed {type(self).__name__}")
