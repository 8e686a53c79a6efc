"""Reconciliation of declared resources against the live configuration.

This module owns the apply loop so the CLI only deals with presentation.
Side effects (wsadmin runs) happen exclusively through the providers; UI
layers observe progress through `ReconcileHooks`.

For each resource:

- ensure present, object absent: `create()`
- ensure present, object present: compare every managed property, `set()`
  the drifted ones, then a single `flush()`
- ensure absent, object present: `destroy()`

A failure on one resource is recorded and the loop moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

from core.domain.errors import WasConfError
from core.domain.models import Ensure, WebSphereResource
from core.interfaces.provider import ResourceProvider


logger = logging.getLogger(__name__)

ProviderFactory = Callable[[WebSphereResource], ResourceProvider]


class Action(str, Enum):
    CREATED = "created"
    REMOVED = "removed"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass
class ApplyRequest:
    """Parameters that control an apply run."""

    resources: Sequence[WebSphereResource]
    dry_run: bool = False


@dataclass
class ReconcileHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    warning: Callable[[str], None] | None = None
    progress: Callable[[int, int, str], None] | None = None


@dataclass
class ResourceOutcome:
    identity: str
    action: Action
    changed: list[str] = field(default_factory=list)
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Output of an apply run."""

    outcomes: list[ResourceOutcome]
    dry_run: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[ResourceOutcome]:
        return [o for o in self.outcomes if o.action is Action.FAILED]

    @property
    def changed(self) -> list[ResourceOutcome]:
        return [o for o in self.outcomes if o.action not in (Action.UNCHANGED, Action.FAILED)]


@dataclass
class DiscoveredState:
    identity: str
    present: bool
    state: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


def drifted_properties(provider: ResourceProvider) -> list[str]:
    """Managed properties whose current value differs from the declared one."""

    return [prop for prop in provider.resource.managed_properties() if not provider.insync(prop)]


def reconcile_one(provider: ResourceProvider, *, dry_run: bool = False) -> ResourceOutcome:
    resource = provider.resource
    identity = resource.identity()
    present = provider.exists()

    if resource.ensure is Ensure.ABSENT:
        if not present:
            return ResourceOutcome(identity, Action.UNCHANGED)
        if not dry_run:
            provider.destroy()
        return ResourceOutcome(identity, Action.REMOVED)

    if not present:
        if not dry_run:
            provider.create()
        return ResourceOutcome(identity, Action.CREATED, changed=resource.managed_properties())

    changed = drifted_properties(provider)
    if not changed:
        return ResourceOutcome(identity, Action.UNCHANGED)
    for prop in changed:
        logger.debug("%s: %s is out of sync", identity, prop)
        provider.set(prop, getattr(resource, prop))
    if not dry_run:
        provider.flush()
    return ResourceOutcome(identity, Action.UPDATED, changed=changed)


def apply(
    *,
    request: ApplyRequest,
    provider_factory: ProviderFactory,
    hooks: ReconcileHooks | None = None,
) -> ReconcileResult:
    hooks = hooks or ReconcileHooks()
    result = ReconcileResult(outcomes=[], dry_run=request.dry_run)
    total = len(request.resources)

    for index, resource in enumerate(request.resources, start=1):
        identity = resource.identity()
        if hooks.progress:
            hooks.progress(index, total, identity)
        logger.debug("%s declared: %s", identity, resource.masked_dump())
        provider: ResourceProvider | None = None
        try:
            provider = provider_factory(resource)
            outcome = reconcile_one(provider, dry_run=request.dry_run)
        except WasConfError as exc:
            logger.error("%s: %s", identity, exc)
            outcome = ResourceOutcome(identity, Action.FAILED, error=str(exc))

        if provider is not None:
            outcome.warnings.extend(provider.warnings)
        for message in outcome.warnings:
            text = f"{identity}: {message}"
            result.warnings.append(text)
            if hooks.warning:
                hooks.warning(text)
        result.outcomes.append(outcome)

    return result


def discover(
    resources: Sequence[WebSphereResource],
    provider_factory: ProviderFactory,
) -> list[DiscoveredState]:
    """Read-only view of the current state of each resource."""

    states: list[DiscoveredState] = []
    for resource in resources:
        identity = resource.identity()
        try:
            provider = provider_factory(resource)
            present = provider.exists()
        except WasConfError as exc:
            states.append(DiscoveredState(identity, present=False, error=str(exc)))
            continue
        states.append(DiscoveredState(identity, present=present, state=provider.current_state()))
    return states
