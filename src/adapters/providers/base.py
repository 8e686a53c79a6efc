"""Provider base class.

Every kind follows the same lifecycle:

1. `exists()` reads the relevant WAS XML file and caches what it finds in
   `current` (flat property -> value mapping).
2. The reconciler compares each managed property with `insync()` and calls
   `set()` for the ones that differ; nothing is executed yet.
3. `flush()` turns the recorded changes into one Jython script, so a
   resource with five drifted properties costs a single wsadmin start.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, ClassVar

from adapters.jython import render_script
from adapters.was_xml import ConfigDocument, load_config
from core.config import AppSettings
from core.domain.errors import ProviderError, RemoteResourceUnavailable, WsadminError
from core.domain.models import SanitizedResource, WebSphereResource, mask_passwords
from core.interfaces.runner import ScriptRunner, WsadminTarget
from core.services.insync import insync


logger = logging.getLogger(__name__)

PARENT_CONFIG_ID_ERROR = 'Invalid parameter value "" for parameter "parent config id" on command "create"'


class BaseProvider:
    resource_type: ClassVar[type[WebSphereResource]] = WebSphereResource
    label: ClassVar[str] = "resource"

    def __init__(
        self,
        resource: WebSphereResource,
        runner: ScriptRunner,
        settings: AppSettings | None = None,
    ) -> None:
        if not isinstance(resource, self.resource_type):
            raise ProviderError(f"{type(self).__name__} cannot manage {type(resource).__name__}")
        self.resource = resource
        self.runner = runner
        self.settings = settings or AppSettings()
        self.current: dict[str, Any] | None = None
        self.property_flush: dict[str, Any] = {}
        self.warnings: list[str] = []

    # -- plumbing -------------------------------------------------------

    @property
    def target(self) -> WsadminTarget:
        return WsadminTarget(
            profile_root=self.resource.profile_root,
            os_user=self.resource.user,
            wsadmin_user=self.resource.wsadmin_user,
            wsadmin_pass=self.resource.wsadmin_pass,
        )

    @property
    def debug(self) -> bool:
        return self.settings.jython_debug or logger.isEnabledFor(logging.DEBUG)

    def warn(self, message: str) -> None:
        logger.warning("%s: %s", self.resource.identity(), message)
        self.warnings.append(message)

    def read_config(self, path: Path | None = None) -> ConfigDocument | None:
        path = path or self.resource.config_path  # type: ignore[attr-defined]
        if isinstance(self.resource, SanitizedResource):
            return load_config(
                path,
                sanitize=self.resource.sanitize,
                ignored_names=self.resource.ignored_names,
            )
        return load_config(path)

    def render(self, template: str, **context: Any) -> str:
        return render_script(template, debug=self.debug, **context)

    def run(self, script: str, *, creating: bool = False) -> str:
        """Run `script`; on create, map the missing-parent failure to a clear error."""

        try:
            output = self.runner.run_script(script, self.target)
        except WsadminError as exc:
            if creating and PARENT_CONFIG_ID_ERROR in exc.output:
                raise RemoteResourceUnavailable(f"{self.label}: {self.resource.name}") from exc
            raise
        if creating and PARENT_CONFIG_ID_ERROR in output:
            raise RemoteResourceUnavailable(f"{self.label}: {self.resource.name}")
        logger.debug("%s output: %s", self.resource.identity(), output.strip())
        return output

    # -- lifecycle ------------------------------------------------------

    def discover(self) -> dict[str, Any] | None:
        """Current state as a property mapping, or None when absent."""

        raise NotImplementedError

    def exists(self) -> bool:
        self.current = self.discover()
        logger.debug("%s exists: %s", self.resource.identity(), self.current is not None)
        return self.current is not None

    def create(self) -> None:
        raise NotImplementedError

    def destroy(self) -> None:
        raise NotImplementedError

    def modify(self) -> None:
        """Apply `property_flush`; only called when it is non-empty."""

        raise NotImplementedError

    def get(self, prop: str) -> Any:
        return (self.current or {}).get(prop)

    def set(self, prop: str, value: Any) -> None:
        self.property_flush[prop] = value

    def insync(self, prop: str) -> bool:
        return insync(self.get(prop), getattr(self.resource, prop))

    def flush(self) -> None:
        if not self.property_flush:
            return
        logger.info("Updating %s (%s)", self.resource.identity(), ", ".join(sorted(self.property_flush)))
        self.modify()
        self.property_flush.clear()

    def current_state(self) -> dict[str, Any]:
        """Discovered state for display; passwords are masked."""

        return mask_passwords(self.current or {})
