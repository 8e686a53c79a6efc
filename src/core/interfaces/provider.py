"""Resource provider contract.

A provider binds one declared resource to the live WAS configuration. The
reconciler only talks to this interface; each kind supplies its own
implementation in `adapters.providers`.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import WebSphereResource


@runtime_checkable
class ResourceProvider(Protocol):
    resource: WebSphereResource
    warnings: list[str]

    def exists(self) -> bool:
        """Discover the current object; caches what it finds."""

        ...

    def create(self) -> None:
        ...

    def destroy(self) -> None:
        ...

    def get(self, prop: str) -> Any:
        """Current value of a managed property (after `exists`)."""

        ...

    def set(self, prop: str, value: Any) -> None:
        """Record a change; applied by `flush`."""

        ...

    def insync(self, prop: str) -> bool:
        ...

    def flush(self) -> None:
        """Apply all recorded changes in one wsadmin invocation."""

        ...

    def current_state(self) -> dict[str, Any]:
        ...
