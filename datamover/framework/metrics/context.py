"""
Metric context: Scoped, tagged factory for named instruments

A MetricContext mints meters and timers by name. Contexts form a tree: the
task owns a root context and each instrumented component gets a child
context named after its class, so instruments with the same name in
different components stay distinguishable.
"""

import logging
import threading
from typing import Any

from .instruments import DEFAULT_RESERVOIR_SIZE, Meter, Timer
from .models import MeterSnapshot, TimerSnapshot

logger = logging.getLogger(__name__)


class MetricContext:
    """Named, tagged scope of meters and timers."""

    def __init__(
        self,
        name: str,
        tags: dict[str, Any] | None = None,
        parent: "MetricContext | None" = None,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
    ):
        """Initialize metric context.

        Args:
            name: Context name
            tags: Tags describing this scope (inherited tags from parent are merged in)
            parent: Parent context, or None for a root context
            reservoir_size: Number of recent samples kept by timers of this context
        """
        self.name = name
        self.parent = parent
        self.reservoir_size = reservoir_size
        self.tags: dict[str, Any] = {**(parent.tags if parent else {}), **(tags or {})}

        self._instruments: dict[str, Meter | Timer] = {}
        self._children: dict[str, MetricContext] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def full_name(self) -> str:
        """Dotted path from the root context."""
        if self.parent is None:
            return self.name
        return f"{self.parent.full_name}.{self.name}"

    @property
    def closed(self) -> bool:
        return self._closed

    def child(self, name: str, tags: dict[str, Any] | None = None) -> "MetricContext":
        """Create a sub-scope registered with this context.

        Args:
            name: Child context name, unique within this context
            tags: Additional tags for the child

        Returns:
            New child MetricContext

        Raises:
            RuntimeError: If this context is closed
            ValueError: If a child with this name already exists
        """
        with self._lock:
            self._check_open()
            if name in self._children:
                raise ValueError(f"Metric context '{self.full_name}' already has a child named '{name}'")
            child = MetricContext(name, tags=tags, parent=self, reservoir_size=self.reservoir_size)
            self._children[name] = child
        return child

    def new_counter(self, name: str) -> Meter:
        """Get or create the meter with this name."""
        return self._get_or_create(name, Meter)

    def new_timer(self, name: str) -> Timer:
        """Get or create the timer with this name."""
        return self._get_or_create(name, Timer)

    def _get_or_create(self, name: str, instrument_class: type[Meter] | type[Timer]):
        with self._lock:
            self._check_open()
            instrument = self._instruments.get(name)
            if instrument is None:
                if instrument_class is Timer:
                    instrument = Timer(name, reservoir_size=self.reservoir_size)
                else:
                    instrument = instrument_class(name)
                self._instruments[name] = instrument
            elif not isinstance(instrument, instrument_class):
                raise ValueError(
                    f"Metric '{name}' already exists in '{self.full_name}' "
                    f"as {type(instrument).__name__}, not {instrument_class.__name__}"
                )
        return instrument

    def get_meters(self) -> dict[str, Meter]:
        with self._lock:
            return {name: m for name, m in self._instruments.items() if isinstance(m, Meter)}

    def get_timers(self) -> dict[str, Timer]:
        with self._lock:
            return {name: t for name, t in self._instruments.items() if isinstance(t, Timer)}

    def get_children(self) -> dict[str, "MetricContext"]:
        with self._lock:
            return dict(self._children)

    def snapshot(self) -> list[MeterSnapshot | TimerSnapshot]:
        """Snapshot every instrument of this context and its descendants."""
        with self._lock:
            instruments = list(self._instruments.values())
            children = list(self._children.values())

        snapshots: list[MeterSnapshot | TimerSnapshot] = [
            instrument.snapshot(context_name=self.full_name, tags=self.tags) for instrument in instruments
        ]
        for child in children:
            snapshots.extend(child.snapshot())
        return snapshots

    def close(self):
        """Close children, drop instruments and detach from the parent.

        Safe to call more than once.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            children = list(self._children.values())

        for child in children:
            child.close()

        with self._lock:
            self._instruments.clear()
            self._children.clear()

        if self.parent is not None:
            self.parent._remove_child(self)
        logger.debug(f"Closed metric context {self.full_name}")

    def _remove_child(self, child: "MetricContext"):
        with self._lock:
            if self._children.get(child.name) is child:
                del self._children[child.name]

    def _check_open(self):
        if self._closed:
            raise RuntimeError(f"Metric context '{self.full_name}' is closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"MetricContext(name={self.full_name!r}, tags={self.tags!r})"
