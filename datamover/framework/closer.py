"""
Closer: Releases a group of owned resources together

Resources are closed in reverse order of registration. Every resource is
closed even if an earlier close fails; failures are re-raised together.
"""

import logging
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Closer:
    """Collects closeable resources and closes them as a unit."""

    def __init__(self):
        self._resources: list[Any] = []

    def register(self, resource: T) -> T:
        """Register a resource with a close() method.

        Returns:
            The resource itself, so creation and registration compose
        """
        if not callable(getattr(resource, "close", None)):
            raise TypeError(f"{type(resource).__name__} has no close() method")
        self._resources.append(resource)
        return resource

    def __len__(self) -> int:
        return len(self._resources)

    def close(self):
        """Close all registered resources, most recently registered first.

        Raises:
            Exception: The failure, if exactly one resource failed to close
            ExceptionGroup: All failures, if several resources failed to close
        """
        errors: list[Exception] = []
        while self._resources:
            resource = self._resources.pop()
            try:
                resource.close()
            except Exception as e:
                logger.warning(f"Failed to close {resource!r}: {e}")
                errors.append(e)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ExceptionGroup("Failed to close resources", errors)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
