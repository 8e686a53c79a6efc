"""Web container objects: virtual hosts, host aliases, transport chains, classloaders."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field, ValidationInfo, field_validator

from core.domain.models import Ensure, ScopedResource
from core.domain.scope import ScopeKind
from core.domain.titles import hostalias_patterns, scoped_patterns
from core.services.insync import munge_keys


def _alias_entry(value: Any) -> tuple[str, str]:
    if isinstance(value, str):
        host, _, port = value.partition(":")
    elif isinstance(value, dict):
        host, port = value.get("hostname", ""), value.get("port", "")
    else:
        items = list(value)
        host = items[0] if items else ""
        port = items[1] if len(items) > 1 else ""
    return str(host), str(port or "80")


class VirtualHost(ScopedResource):
    """A virtual host and its complete list of host aliases."""

    kind: ClassVar[str] = "virtualhost"
    name_field: ClassVar[str] = "vhost"
    properties: ClassVar[tuple[str, ...]] = ("alias_list",)
    allowed_scopes: ClassVar[tuple[ScopeKind, ...]] = (ScopeKind.CELL,)
    title_patterns = scoped_patterns("vhost", scopes=("cell",))

    vhost: str = Field(..., min_length=1, description="Virtual host name.")
    alias_list: list[tuple[str, str]] | None = Field(
        default=None,
        description="[[hostname, port], ...]; the port defaults to 80.",
    )
    scope: ScopeKind | None = Field(default=ScopeKind.CELL)

    @field_validator("alias_list", mode="before")
    @classmethod
    def _normalise_aliases(cls, value: Any) -> Any:
        if value is None:
            return None
        return [_alias_entry(item) for item in value if item]

    @property
    def config_path(self) -> Path:
        return self.cell_config_dir / "virtualhosts.xml"


class HostAlias(ScopedResource):
    """A single host alias inside an existing virtual host."""

    kind: ClassVar[str] = "hostalias"
    name_field: ClassVar[str] = "hostname"
    allowed_scopes: ClassVar[tuple[ScopeKind, ...]] = (ScopeKind.CELL,)
    checked_names: ClassVar[tuple[str, ...]] = ("virtual_host", "cell", "profile", "user")
    # `*` is a valid host name.
    check_name: ClassVar[bool] = False
    title_patterns = hostalias_patterns()

    hostname: str = Field(..., min_length=1, description="Alias host name or `*`.")
    portnumber: int = Field(..., ge=1, le=65535)
    virtual_host: str = Field(default="default_host")
    scope: ScopeKind | None = Field(default=ScopeKind.CELL)

    @property
    def name(self) -> str:
        return f"{self.hostname}:{self.portnumber}"

    @property
    def config_path(self) -> Path:
        return self.cell_config_dir / "virtualhosts.xml"


class ChainTemplate(str, Enum):
    WEB_CONTAINER = "WebContainer"
    WEB_CONTAINER_SECURE = "WebContainer-Secure"


class TransportChain(ScopedResource):
    """A web container inbound transport chain on one server."""

    kind: ClassVar[str] = "transportchain"
    name_field: ClassVar[str] = "tc_name"
    properties: ClassVar[tuple[str, ...]] = (
        "enabled",
        "endpoint_name",
        "tcp_inbound_channel",
        "ssl_inbound_channel",
        "http_inbound_channel",
        "wcc_inbound_channel",
    )
    allowed_scopes: ClassVar[tuple[ScopeKind, ...]] = (ScopeKind.SERVER,)
    config_file: ClassVar[str] = "server.xml"
    title_patterns = scoped_patterns("tc_name", scopes=("server",))

    tc_name: str = Field(..., min_length=1, description="Chain name.")
    enabled: bool = Field(default=True)
    template: ChainTemplate = Field(default=ChainTemplate.WEB_CONTAINER_SECURE)
    endpoint_name: str | None = Field(default=None, description="Named TCP end point used by the chain.")
    endpoint_details: tuple[str, int] | None = Field(
        default=None,
        description="[host, port] used when the end point must be created.",
    )
    tcp_inbound_channel: dict[str, Any] | None = Field(default=None)
    ssl_inbound_channel: dict[str, Any] | None = Field(default=None)
    http_inbound_channel: dict[str, Any] | None = Field(default=None)
    wcc_inbound_channel: dict[str, Any] | None = Field(default=None)

    @field_validator(
        "tcp_inbound_channel",
        "ssl_inbound_channel",
        "http_inbound_channel",
        "wcc_inbound_channel",
        mode="before",
    )
    @classmethod
    def _munge_channels(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError(f"{info.field_name} property must be a hash")
        return munge_keys(value)

    def validate_kind(self) -> None:
        if self.endpoint_name is None:
            raise ValueError("endpoint_name is required")
        if self.tcp_inbound_channel and "endPointName" in self.tcp_inbound_channel:
            raise ValueError(
                "tcp_inbound_channel must not contain the end_point_name parameter. "
                "The `endpoint_name` parameter will be used instead."
            )
        if self.template is ChainTemplate.WEB_CONTAINER and self.ssl_inbound_channel:
            raise ValueError("Argument error in ssl_inbound_channel: cannot use with an insecure HTTP template")
        if self.template is ChainTemplate.WEB_CONTAINER_SECURE and self.ssl_inbound_channel is None:
            self.ssl_inbound_channel = {"mappingConfigAlias": "", "authDataAlias": ""}


class ClassloaderMode(str, Enum):
    PARENT_FIRST = "PARENT_FIRST"
    PARENT_LAST = "PARENT_LAST"


class JvmClassloader(ScopedResource):
    """An application server classloader referencing shared libraries."""

    kind: ClassVar[str] = "jvm_classloader"
    name_field: ClassVar[str] = "jcl_name"
    properties: ClassVar[tuple[str, ...]] = ("shared_libs",)
    allowed_scopes: ClassVar[tuple[ScopeKind, ...]] = (ScopeKind.SERVER,)
    config_file: ClassVar[str] = "server.xml"
    title_patterns = scoped_patterns("jcl_name", scopes=("server",))

    jcl_name: str = Field(..., min_length=1, description="Label of the classloader declaration.")
    mode: ClassloaderMode = Field(default=ClassloaderMode.PARENT_LAST)
    shared_libs: list[str] = Field(default_factory=list, description="Shared library names.")
    enforce_shared_libs: bool = Field(default=False, description="Remove undeclared library references.")

    def validate_kind(self) -> None:
        if self.ensure is Ensure.PRESENT and not self.shared_libs:
            raise ValueError("shared_libs must name at least one shared library")
