"""Key stores, certificates and SSL configurations (security.xml)."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import ClassVar

from pydantic import Field

from core.domain.models import Ensure, SecurityScopedResource, require_absolute
from core.domain.scope import ScopeKind
from core.domain.titles import scoped_patterns


class KeyStoreUsage(str, Enum):
    SSL_KEYS = "SSLKeys"
    ROOT_KEYS = "RootKeys"
    DEFAULT_SIGNERS = "DefaultSigners"
    RSA_TOKEN_KEYS = "RSATokenKeys"
    KEY_SET_KEYS = "KeySetKeys"


class KeyStoreType(str, Enum):
    PKCS12 = "PKCS12"
    JCEKS = "JCEKS"
    JKS = "JKS"
    CMSKS = "CMSKS"
    PKCS11 = "PKCS11"


class KeyStore(SecurityScopedResource):
    """A key store registered in a management scope."""

    kind: ClassVar[str] = "keystore"
    name_field: ClassVar[str] = "ks_name"
    properties: ClassVar[tuple[str, ...]] = (
        "description",
        "usage",
        "location",
        "type",
        "store_password",
        "readonly",
        "init_at_startup",
        "enable_crypto_hw",
        "enable_stashfile",
        "remote_hostlist",
    )
    title_patterns = scoped_patterns("ks_name")

    ks_name: str = Field(..., min_length=1, description="Key store name.")
    description: str | None = Field(default=None)
    usage: KeyStoreUsage = Field(default=KeyStoreUsage.SSL_KEYS)
    location: str | None = Field(default=None, description="Key store file; `${CONFIG_ROOT}` is expanded.")
    type: KeyStoreType | None = Field(default=None)
    store_password: str | None = Field(default=None)
    readonly: bool = Field(default=False)
    init_at_startup: bool = Field(default=False)
    enable_crypto_hw: bool = Field(default=False)
    enable_stashfile: bool = Field(default=False)
    remote_hostlist: str = Field(default="")

    def validate_kind(self) -> None:
        if self.ensure is Ensure.PRESENT:
            if not self.location:
                raise ValueError("location is required")
            if self.type is None:
                raise ValueError("type is required")
            if not self.store_password:
                raise ValueError("store_password is required")


class PersonalCert(SecurityScopedResource):
    """A personal certificate imported into a WAS managed key store."""

    kind: ClassVar[str] = "personalcert"
    name_field: ClassVar[str] = "cert_alias"
    title_patterns = scoped_patterns("cert_alias")

    cert_alias: str = Field(..., min_length=1, description="Alias of the certificate in the target key store.")
    key_store_name: str = Field(..., min_length=1, description="Target key store.")
    key_file_path: Path | None = Field(default=None, description="Source key store file (absolute).")
    key_file_pass: str | None = Field(default=None, description="Source key store password.")
    key_file_type: KeyStoreType | None = Field(default=None)
    key_file_certalias: str | None = Field(default=None, description="Certificate alias in the source file.")
    replace_old_cert: str | None = Field(default=None, description="Certificate to replace with the import.")
    delete_old_cert: bool = Field(default=False)
    delete_old_signers: bool = Field(default=False)

    def validate_kind(self) -> None:
        if self.ensure is Ensure.PRESENT:
            require_absolute(self.key_file_path, "key_file_path")
            if self.key_file_type is None:
                raise ValueError("key_file_type is required")
            if not self.key_file_certalias:
                raise ValueError("key_file_certalias is required")


class SignerCert(SecurityScopedResource):
    """A signer certificate added to a trust store."""

    kind: ClassVar[str] = "signercert"
    name_field: ClassVar[str] = "cert_alias"
    title_patterns = scoped_patterns("cert_alias")

    cert_alias: str = Field(..., min_length=1)
    key_store_name: str = Field(..., min_length=1, description="Trust store receiving the certificate.")
    cert_file_path: Path | None = Field(default=None, description="Certificate file (absolute).")
    base_64_encoded: bool = Field(default=True)

    def validate_kind(self) -> None:
        if self.ensure is Ensure.PRESENT:
            require_absolute(self.cert_file_path, "cert_file_path")


class SecurityLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    CUSTOM = "CUSTOM"


class SslProtocol(str, Enum):
    SSL_TLS = "SSL_TLS"
    SSL_TLSV2 = "SSL_TLSv2"
    SSL = "SSL"
    SSLV2 = "SSLv2"
    SSLV3 = "SSLv3"
    TLS = "TLS"
    TLSV1 = "TLSv1"
    TLSV1_2 = "TLSv1.2"
    TLSV1_3 = "TLSv1.3"


class SslConfig(SecurityScopedResource):
    """An SSL configuration (repertoire entry)."""

    kind: ClassVar[str] = "sslconfig"
    name_field: ClassVar[str] = "conf_alias"
    properties: ClassVar[tuple[str, ...]] = (
        "key_store_name",
        "trust_store_name",
        "server_key_alias",
        "client_key_alias",
        "key_store_scope",
        "trust_store_scope",
        "client_auth_req",
        "client_auth_supp",
        "security_level",
        "enabled_ciphers",
        "ssl_protocol",
        "jsse_provider",
    )
    title_patterns = scoped_patterns("conf_alias")

    conf_alias: str = Field(..., min_length=1, description="SSL configuration alias.")
    key_store_name: str | None = Field(default=None)
    trust_store_name: str | None = Field(default=None)
    server_key_alias: str = Field(default="", description="Server certificate alias.")
    client_key_alias: str = Field(default="", description="Client certificate alias.")
    key_store_scope: ScopeKind | None = Field(default=None, description="Scope of the key store; defaults to `scope`.")
    trust_store_scope: ScopeKind | None = Field(default=None, description="Scope of the trust store; defaults to `scope`.")
    client_auth_req: bool = Field(default=False)
    client_auth_supp: bool = Field(default=False)
    security_level: SecurityLevel = Field(default=SecurityLevel.HIGH)
    enabled_ciphers: str = Field(default="", description="Space separated cipher list (CUSTOM level).")
    ssl_protocol: SslProtocol = Field(default=SslProtocol.SSL_TLS)
    type: str = Field(default="JSSE")
    jsse_provider: str = Field(default="IBMJSSE2")

    def validate_kind(self) -> None:
        if self.key_store_scope is None:
            self.key_store_scope = self.scope
        if self.trust_store_scope is None:
            self.trust_store_scope = self.scope
        if self.ensure is Ensure.PRESENT and (not self.key_store_name or not self.trust_store_name):
            raise ValueError("key_store_name and trust_store_name are required")


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class SslConfigGroup(SecurityScopedResource):
    """An SSL configuration group binding an SSL config to a direction."""

    kind: ClassVar[str] = "sslconfiggroup"
    name_field: ClassVar[str] = "confgrp_alias"
    properties: ClassVar[tuple[str, ...]] = ("ssl_config_name", "ssl_config_scope", "client_cert_alias")
    title_patterns = scoped_patterns(("direction", "confgrp_alias"))

    confgrp_alias: str = Field(..., min_length=1, description="Group name.")
    direction: Direction | None = Field(default=None)
    ssl_config_name: str | None = Field(default=None, description="Alias of the SSL config to use.")
    ssl_config_scope: ScopeKind | None = Field(
        default=None,
        alias="ssl_config_scope_type",
        description="Scope of the SSL config; defaults to `scope`.",
    )
    client_cert_alias: str = Field(default="")

    def validate_kind(self) -> None:
        if self.direction is None:
            raise ValueError("direction is required")
        if self.ssl_config_scope is None:
            self.ssl_config_scope = self.scope
        if self.ensure is Ensure.PRESENT and not self.ssl_config_name:
            raise ValueError("ssl_config_name is required")
