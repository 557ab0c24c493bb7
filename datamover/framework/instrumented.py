"""
Instrumented: Metric scope of one pipeline component within a task
"""

import logging

from .context import TaskContext
from .metrics import MetricContext

logger = logging.getLogger(__name__)


class Instrumented:
    """Child metric context for a component class, keyed by (task, class).

    The context is named after the component class and tagged with its
    qualified name, so components of different types never share
    instrument identities.
    """

    def __init__(self, context: TaskContext, component_class: type):
        if context is None:
            raise ValueError("Instrumented requires a task context")
        self.component_class = component_class
        self.metric_context: MetricContext = context.metric_context.child(
            self._unique_name(context.metric_context, component_class.__name__),
            tags={"component": f"{component_class.__module__}.{component_class.__qualname__}"},
        )
        logger.debug(f"Created metric context {self.metric_context.full_name} for task {context.task_id}")

    @staticmethod
    def _unique_name(parent: MetricContext, base_name: str) -> str:
        # Several instances of the same class in one task get numbered scopes
        existing = parent.get_children()
        if base_name not in existing:
            return base_name
        index = 1
        while f"{base_name}_{index}" in existing:
            index += 1
        return f"{base_name}_{index}"

    def get_context(self) -> MetricContext:
        return self.metric_context

    def close(self):
        self.metric_context.close()

    def __repr__(self) -> str:
        return f"Instrumented({self.metric_context.full_name!r})"
