"""Manifest loading.

A manifest is a YAML (or JSON) document:

    defaults:
      profile_base: /opt/IBM/WebSphere/AppServer/profiles
      dmgr_profile: PROFILE_DMGR_01
      cell: CELL_01
    resources:
      - kind: queue
        q_name: PAYMENTS.IN
        scope: cluster
        cluster: CL_APP
        queue_name: PAYMENTS.IN

This module lives in `core/` because it decides *which* resources an
operator wants, independently of how the CLI presents them.

Value precedence: resource fields, then fields derived from the resource
`title`, then `defaults`, then `AppSettings`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from core.config import AppSettings
from core.domain.errors import ManifestError, ResourceValidationError
from core.domain.models import WebSphereResource
from core.domain.resources import resource_type


logger = logging.getLogger(__name__)

# AppSettings field -> resource field.
_SETTINGS_FIELDS = {
    "profile_base": "profile_base",
    "dmgr_profile": "dmgr_profile",
    "cell": "cell",
    "os_user": "user",
    "wsadmin_user": "wsadmin_user",
    "wsadmin_pass": "wsadmin_pass",
    "sanitize": "sanitize",
    "ignored_names": "ignored_names",
}


def read_manifest(path: Path) -> dict[str, Any]:
    """Parse `path` into a `{defaults, resources}` mapping."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Cannot read manifest {path}: {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ManifestError(f"Cannot parse manifest {path}: {exc}") from exc

    if data is None:
        return {"defaults": {}, "resources": []}
    if isinstance(data, list):
        data = {"resources": data}
    if not isinstance(data, dict):
        raise ManifestError(f"{path}: expected a mapping with a `resources` list")

    defaults = data.get("defaults") or {}
    resources = data.get("resources") or []
    if not isinstance(defaults, dict):
        raise ManifestError(f"{path}: `defaults` must be a mapping")
    if not isinstance(resources, list):
        raise ManifestError(f"{path}: `resources` must be a list")
    return {"defaults": defaults, "resources": resources}


def settings_defaults(settings: AppSettings) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for setting, field_name in _SETTINGS_FIELDS.items():
        value = getattr(settings, setting)
        if value is not None:
            values[field_name] = value
    return values


def _merge(
    model: type[WebSphereResource],
    entry: dict[str, Any],
    layers: list[dict[str, Any]],
) -> dict[str, Any]:
    data = model.expand(entry)
    for layer in layers:
        for key, value in layer.items():
            if key not in model.model_fields or data.get(key) is not None:
                continue
            # An explicit `profile` already names the DMGR profile.
            if key == "dmgr_profile" and data.get("profile"):
                continue
            data[key] = value
    return data


def build_resource(
    entry: dict[str, Any],
    *,
    defaults: dict[str, Any] | None = None,
    settings: AppSettings | None = None,
) -> WebSphereResource:
    """Validate one manifest entry into its resource model."""

    if not isinstance(entry, dict):
        raise ManifestError(f"Resource entries must be mappings, got {type(entry).__name__}")
    data = dict(entry)
    kind = data.pop("kind", None)
    if not kind:
        raise ManifestError(f"Resource entry without `kind`: {entry}")
    try:
        model = resource_type(str(kind))
    except KeyError as exc:
        raise ManifestError(exc.args[0]) from None

    layers = [defaults or {}]
    if settings is not None:
        layers.append(settings_defaults(settings))

    try:
        merged = _merge(model, data, layers)
        return model.model_validate(merged)
    except (ValidationError, ValueError) as exc:
        field = model.model_fields.get(model.name_field)
        name = data.get(model.name_field) or (field and field.alias and data.get(field.alias)) or data.get("title")
        raise ResourceValidationError(str(kind), name, _error_text(exc)) from exc


def _error_text(exc: Exception) -> str:
    if not isinstance(exc, ValidationError):
        return str(exc)
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()))
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def load_manifest(path: Path, settings: AppSettings | None = None) -> list[WebSphereResource]:
    """Load and validate every resource declared in `path`."""

    data = read_manifest(path)
    resources = [
        build_resource(entry, defaults=data["defaults"], settings=settings)
        for entry in data["resources"]
    ]
    logger.debug("Loaded %d resources from %s", len(resources), path)
    return resources
