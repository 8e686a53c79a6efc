"""Cell security objects: file registry users/groups, J2C aliases, JAAS, TAI."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field, field_validator

from core.domain.models import ScopedResource, WebSphereResource
from core.domain.scope import ScopeKind
from core.domain.titles import cell_patterns, scoped_patterns


class User(WebSphereResource):
    """A user in the WAS file-based (federated) registry."""

    kind: ClassVar[str] = "user"
    name_field: ClassVar[str] = "userid"
    properties: ClassVar[tuple[str, ...]] = ("common_name", "surname", "mail", "password")
    title_patterns = cell_patterns("userid")

    userid: str = Field(..., min_length=1, description="uid of the user.")
    common_name: str | None = Field(default=None, description="cn of the user.")
    surname: str | None = Field(default=None, description="sn of the user.")
    mail: str | None = Field(default=None)
    password: str | None = Field(default=None)
    manage_password: bool = Field(
        default=False,
        description="Check the current password through the SecurityAdmin MBean.",
    )

    @property
    def config_path(self) -> Path:
        return self.cell_config_dir / "fileRegistry.xml"


class Group(WebSphereResource):
    """A group in the WAS file-based registry and its membership."""

    kind: ClassVar[str] = "group"
    name_field: ClassVar[str] = "groupid"
    properties: ClassVar[tuple[str, ...]] = ("description", "members")
    title_patterns = cell_patterns("groupid")

    groupid: str = Field(..., min_length=1, description="cn of the group.")
    description: str | None = Field(default=None)
    members: list[str] = Field(
        default_factory=list,
        description="Users (uid) or groups (cn) that belong to the group.",
    )
    enforce_members: bool = Field(
        default=False,
        description="Remove members that are not declared.",
    )

    @property
    def config_path(self) -> Path:
        return self.cell_config_dir / "fileRegistry.xml"


class AuthAlias(WebSphereResource):
    """J2C authentication data entry in the global security configuration."""

    kind: ClassVar[str] = "authalias"
    name_field: ClassVar[str] = "aliasid"
    properties: ClassVar[tuple[str, ...]] = ("userid", "password", "description")
    title_patterns = cell_patterns("aliasid")

    aliasid: str = Field(..., min_length=1, alias="alias", description="Alias of the entry.")
    userid: str | None = Field(default=None, description="User stored in the entry.")
    password: str | None = Field(default=None)
    description: str | None = Field(default=None)
    manage_password: bool = Field(
        default=False,
        description="Compare the stored (xor encoded) password with the declared one.",
    )

    @property
    def config_path(self) -> Path:
        return self.cell_config_dir / "security.xml"


class LoginType(str, Enum):
    SYSTEM = "system"
    APPLICATION = "application"


class JaasLogin(ScopedResource):
    """JAAS system or application login entry with its login modules."""

    kind: ClassVar[str] = "jaaslogin"
    name_field: ClassVar[str] = "jaas_login"
    properties: ClassVar[tuple[str, ...]] = ("login_modules",)
    allowed_scopes: ClassVar[tuple[ScopeKind, ...]] = (ScopeKind.CELL,)
    config_file: ClassVar[str] = "security.xml"
    title_patterns = scoped_patterns("jaas_login", scopes=("cell",))

    jaas_login: str = Field(..., min_length=1, description="Alias of the login entry.")
    login_type: LoginType = Field(default=LoginType.SYSTEM)
    login_modules: dict[str, dict[str, Any]] | None = Field(
        default=None,
        description="module class -> {ordinal, authentication_strategy, custom_properties}.",
    )
    scope: ScopeKind | None = Field(default=ScopeKind.CELL)

    @field_validator("login_modules", mode="before")
    @classmethod
    def _check_modules(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("login_modules property must be a hash")
        modules: dict[str, dict[str, Any]] = {}
        for module_class, settings in value.items():
            settings = dict(settings or {})
            settings.setdefault("authentication_strategy", "REQUIRED")
            if "ordinal" in settings:
                ordinal = settings["ordinal"]
                if isinstance(ordinal, bool) or not str(ordinal).strip().isdigit():
                    raise ValueError(f"ordinal of {module_class} must be an integer")
                settings["ordinal"] = int(ordinal)
            props = settings.get("custom_properties")
            if props is not None and not isinstance(props, dict):
                raise ValueError(f"custom_properties of {module_class} must be a hash")
            modules[str(module_class)] = settings
        return modules

    def ordered_modules(self) -> list[str]:
        """Module classes sorted by their declared ordinal (declaration order breaks ties)."""

        modules = self.login_modules or {}
        position = {name: index for index, name in enumerate(modules)}
        return sorted(
            modules,
            key=lambda name: (int(modules[name].get("ordinal", position[name] + 1)), position[name]),
        )


class _DomainResource(WebSphereResource):
    secd_name: str = Field(default="global", description="`global` or a security domain name.")

    @property
    def is_global(self) -> bool:
        return self.secd_name == "global"

    @property
    def config_path(self) -> Path:
        if self.is_global:
            return self.cell_config_dir / "security.xml"
        return (
            self.profile_root
            / "config"
            / "waspolicies"
            / "default"
            / "securitydomains"
            / self.secd_name
            / "domain-security.xml"
        )


class TrustAssociation(_DomainResource):
    """Trust association switch for global security or a security domain."""

    kind: ClassVar[str] = "trustassociation"
    name_field: ClassVar[str] = "secd_name"
    properties: ClassVar[tuple[str, ...]] = ("enabled",)
    title_patterns = cell_patterns("secd_name")

    enabled: bool = Field(default=True)


class Interceptor(_DomainResource):
    """Trust association interceptor and its custom properties."""

    kind: ClassVar[str] = "interceptor"
    name_field: ClassVar[str] = "interceptor_classname"
    properties: ClassVar[tuple[str, ...]] = ("trust_properties",)
    checked_names: ClassVar[tuple[str, ...]] = ("secd_name", "cell", "profile", "user")
    title_patterns = cell_patterns(("secd_name", "interceptor_classname"))

    interceptor_classname: str = Field(..., min_length=1, description="Fully qualified TAI class.")
    trust_properties: dict[str, Any] | None = Field(
        default=None,
        alias="properties",
        description="Custom properties of the interceptor.",
    )

    @field_validator("trust_properties", mode="before")
    @classmethod
    def _check_properties(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, dict):
            raise ValueError("when defined, `properties` property must be a hash")
        return {str(k): v for k, v in value.items()} if value is not None else None


class GlobalSecurity(WebSphereResource):
    """Application security switch of the global security configuration."""

    kind: ClassVar[str] = "globalsecurity"
    name_field: ClassVar[str] = "secd_name"
    properties: ClassVar[tuple[str, ...]] = ("appsecurity",)
    title_patterns = cell_patterns("secd_name")

    secd_name: str = Field(default="global", description="Must be `global`.")
    appsecurity: bool = Field(default=False, description="Enable application security.")

    def validate_kind(self) -> None:
        if self.secd_name != "global":
            raise ValueError(f"Invalid Security Domain {self.secd_name} - must be 'global'")

    @property
    def config_path(self) -> Path:
        return self.cell_config_dir / "security.xml"
