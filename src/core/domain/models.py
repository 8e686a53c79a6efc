"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation at the edge (manifest files) with self-documenting
  `Field` declarations, without coupling the core to wsadmin or XML.

These models describe *what* an operator wants a WebSphere object to look
like, not *how* it gets there. Fields listed in a model's `properties` are
compared against the discovered state; a property left as `None` is not
managed.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from core.domain.scope import ScopeKind, ScopeRef
from core.domain.titles import TitlePattern, expand_title


NAME_PATTERN = re.compile(r"^[-0-9A-Za-z._]+$")


def mask_passwords(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of `data` with non-empty `*pass*` values hidden."""

    return {
        key: "********" if "pass" in key and isinstance(value, str) and value else value
        for key, value in data.items()
    }


class Ensure(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class WebSphereResource(BaseModel):
    """Fields shared by every WebSphere resource kind."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: ClassVar[str] = ""
    name_field: ClassVar[str] = ""
    properties: ClassVar[tuple[str, ...]] = ()
    title_patterns: ClassVar[tuple[TitlePattern, ...]] = ()
    # Values that end up in wsadmin object names and paths.
    checked_names: ClassVar[tuple[str, ...]] = ("cell", "profile", "user")
    check_name: ClassVar[bool] = True

    ensure: Ensure = Field(
        default=Ensure.PRESENT,
        description="Whether the object must exist (present) or not (absent).",
    )
    title: str | None = Field(
        default=None,
        description="Optional composite title (colon separated) that fills identity fields.",
    )
    profile_base: Path | None = Field(
        default=None,
        description="Absolute path to the WAS profiles directory.",
    )
    dmgr_profile: str | None = Field(
        default=None,
        description="DMGR profile name; defaults to `profile`.",
    )
    profile: str | None = Field(
        default=None,
        description="Profile name; defaults to `dmgr_profile`.",
    )
    cell: str | None = Field(default=None, description="Cell the object belongs to.")
    user: str = Field(
        default="root",
        min_length=1,
        description="OS user that runs wsadmin.",
    )
    wsadmin_user: str | None = Field(default=None, description="wsadmin administrative user.")
    wsadmin_pass: str | None = Field(default=None, description="wsadmin administrative password.")

    @model_validator(mode="before")
    @classmethod
    def _expand_title(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return expand_title(data, cls.title_patterns)
        return data

    @model_validator(mode="after")
    def _check_common(self) -> "WebSphereResource":
        if self.cell is None:
            raise ValueError("cell is required")
        if self.profile_base is None or not self.profile_base.is_absolute():
            raise ValueError(f"Invalid profile_base {self.profile_base}")
        if self.profile is None:
            if not self.dmgr_profile:
                raise ValueError("profile is required")
            self.profile = self.dmgr_profile
        if self.dmgr_profile is None:
            self.dmgr_profile = self.profile
        names = (self.name_field, *self.checked_names) if self.check_name else self.checked_names
        for field_name in names:
            value = getattr(self, field_name, None)
            if value is not None and not NAME_PATTERN.match(str(value)):
                raise ValueError(f"Invalid {field_name} {value}")
        self.validate_scope()
        self.validate_kind()
        return self

    def validate_scope(self) -> None:
        """Scope checks, overridden by scoped kinds."""

    def validate_kind(self) -> None:
        """Kind specific checks; raise ValueError on bad input."""

    @classmethod
    def expand(cls, data: dict[str, Any]) -> dict[str, Any]:
        return expand_title(data, cls.title_patterns)

    @property
    def name(self) -> str:
        return str(getattr(self, self.name_field))

    @property
    def profile_root(self) -> Path:
        assert self.profile_base is not None
        return self.profile_base / str(self.dmgr_profile)

    @property
    def cell_config_dir(self) -> Path:
        return self.profile_root / "config" / "cells" / str(self.cell)

    def managed_properties(self) -> list[str]:
        return [p for p in self.properties if getattr(self, p) is not None]

    def identity(self) -> str:
        return f"{self.kind}[{self.name}]"

    def masked_dump(self) -> dict[str, Any]:
        """Model dump with secrets replaced, for debug logs."""

        return mask_passwords(self.model_dump(mode="json", exclude={"title"}))


class ScopedResource(WebSphereResource):
    """A resource addressed by a cell/cluster/node/server scope."""

    allowed_scopes: ClassVar[tuple[ScopeKind, ...]] = (
        ScopeKind.CELL,
        ScopeKind.CLUSTER,
        ScopeKind.NODE,
        ScopeKind.SERVER,
    )
    config_file: ClassVar[str] = "resources.xml"
    checked_names: ClassVar[tuple[str, ...]] = ("server", "cell", "node_name", "cluster", "profile", "user")

    scope: ScopeKind | None = Field(default=None, description="cell, cluster, node or server.")
    cluster: str | None = Field(default=None, description="Cluster name (cluster scope).")
    node_name: str | None = Field(default=None, description="Node name (node and server scope).")
    server: str | None = Field(default=None, description="Server name (server scope).")

    def validate_scope(self) -> None:
        if self.scope is None or self.scope not in self.allowed_scopes:
            allowed = ", ".join(s.value for s in self.allowed_scopes)
            raise ValueError(f"Invalid scope {self.scope and self.scope.value}: Must be {allowed}")
        if self.scope is ScopeKind.SERVER and self.server is None:
            raise ValueError("server is required when scope is server")
        if self.scope in (ScopeKind.SERVER, ScopeKind.NODE) and self.node_name is None:
            raise ValueError("node_name is required when scope is server, or node")
        if self.scope is ScopeKind.CLUSTER and self.cluster is None:
            raise ValueError("cluster is required when scope is cluster")

    @property
    def scope_ref(self) -> ScopeRef:
        assert self.scope is not None and self.cell is not None
        return ScopeRef(
            kind=self.scope,
            cell=self.cell,
            cluster=self.cluster,
            node=self.node_name,
            server=self.server,
        )

    @property
    def config_path(self) -> Path:
        return self.scope_ref.file(self.profile_root, self.config_file)


class SanitizedResource(ScopedResource):
    """Resources read from resources.xml, which may need sanitising first."""

    sanitize: bool = Field(
        default=True,
        description="Drop resourceProperties lines that break XML parsing.",
    )
    ignored_names: list[str] = Field(
        default_factory=lambda: ["zip", "xml"],
        description="Extensions of resourceProperties names to drop when sanitising.",
    )


class SecurityScopedResource(ScopedResource):
    """Scoped objects kept in the cell's security.xml (keystores, SSL)."""

    @property
    def config_path(self) -> Path:
        return self.cell_config_dir / "security.xml"


def require_absolute(value: Path | str | None, label: str) -> None:
    if value is None or not Path(value).is_absolute():
        raise ValueError(f"Invalid {label} {value}")
