"""Key stores, certificates and SSL configurations kept in security.xml.

security.xml addresses scoped objects through `managementScopes`: each
keystore, repertoire entry or SSL config group carries the xmi:id of its
management scope, whose `scopeName` is the `(cell):C:(node):N` form of
the scope. Lookups therefore resolve the scope id first.

Certificates are not described in security.xml at all; their presence is
checked by running keytool against the store the certificate belongs to.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from adapters.providers.base import BaseProvider
from adapters.was_xml import ConfigDocument, xor_decode
from core.domain.errors import ProviderError
from core.domain.models import Ensure
from core.domain.resources.ssl import KeyStore, PersonalCert, SignerCert, SslConfig, SslConfigGroup
from core.domain.scope import ScopeKind
from core.services.insync import as_text


logger = logging.getLogger(__name__)

CONFIG_ROOT = "${CONFIG_ROOT}"


def management_scope_id(doc: ConfigDocument, scope_name: str) -> str | None:
    return doc.text("/*/managementScopes[@scopeName=$scope]/@xmi:id", scope=scope_name)


def scope_type(doc: ConfigDocument, scope_id: str | None) -> str | None:
    if not scope_id:
        return None
    return doc.text("/*/managementScopes[@xmi:id=$id]/@scopeType", id=scope_id)


def find_keystore(doc: ConfigDocument, scope_name: str, ks_name: str) -> Any:
    scope_id = management_scope_id(doc, scope_name)
    if scope_id is None:
        return None
    return doc.first("/*/keyStores[@managementScope=$scope][@name=$name]", scope=scope_id, name=ks_name)


def _admintask(provider: BaseProvider, label: str, *calls: tuple[str, dict[str, Any]]) -> str:
    return provider.render("admintask", label=label, calls=list(calls))


class KeyStoreProvider(BaseProvider):
    resource_type = KeyStore
    label = "KeyStore"

    resource: KeyStore

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        entry = find_keystore(doc, self.resource.scope_ref.xml, self.resource.ks_name)
        if entry is None:
            return None
        return {
            "description": entry.get("description"),
            "usage": entry.get("usage"),
            "location": entry.get("location"),
            "type": entry.get("type"),
            "store_password": xor_decode(entry.get("password")),
            "readonly": entry.get("readOnly", "false"),
            "init_at_startup": entry.get("initializeAtStartup", "false"),
            "enable_crypto_hw": entry.get("useForAcceleration", "false"),
            # Not recorded in security.xml.
            "enable_stashfile": self.resource.enable_stashfile,
            "remote_hostlist": entry.get("hostList", ""),
        }

    def _identity_params(self) -> dict[str, Any]:
        return {
            "scopeName": self.resource.scope_ref.xml,
            "keyStoreName": self.resource.ks_name,
            "keyStoreLocation": self.resource.location,
            "keyStoreType": self.resource.type,
            "keyStoreUsage": self.resource.usage,
        }

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        params = {
            **self._identity_params(),
            "keyStoreDescription": self.resource.description or "",
            "keyStorePassword": self.resource.store_password,
            "keyStorePasswordVerify": self.resource.store_password,
            "keyStoreReadOnly": self.resource.readonly,
            "keyStoreInitAtStartup": self.resource.init_at_startup,
            "keyStoreHostList": self.resource.remote_hostlist,
            "enableCryptoOperations": self.resource.enable_crypto_hw,
            "keyStoreStashFile": self.resource.enable_stashfile,
        }
        self.run(_admintask(self, "createKeyStore", ("createKeyStore", params)), creating=True)

    def modify(self) -> None:
        for prop, message in (
            ("enable_crypto_hw", "Hardware crypto operations cannot be modified after the key store is created."),
            ("remote_hostlist", "The remote host list cannot be modified after the key store is created."),
        ):
            if self.property_flush.pop(prop, None) is not None:
                self.warn(message)
        if not self.property_flush:
            return

        changing_password = "store_password" in self.property_flush
        # modifyKeyStore authenticates with the password the store has now.
        current_password = self.get("store_password") if changing_password else self.resource.store_password
        calls: list[tuple[str, dict[str, Any]]] = [
            (
                "modifyKeyStore",
                {
                    **self._identity_params(),
                    "keyStoreDescription": self.resource.description or "",
                    "keyStorePassword": current_password,
                    "keyStoreReadOnly": self.resource.readonly,
                    "keyStoreInitAtStartup": self.resource.init_at_startup,
                },
            )
        ]
        if changing_password:
            calls.append(
                (
                    "changeKeyStorePassword",
                    {
                        "scopeName": self.resource.scope_ref.xml,
                        "keyStoreName": self.resource.ks_name,
                        "keyStorePassword": current_password,
                        "newKeyStorePassword": self.resource.store_password,
                        "newKeyStorePasswordVerify": self.resource.store_password,
                    },
                )
            )
        self.run(_admintask(self, "modifyKeyStore", *calls))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        params = {"keyStoreName": self.resource.ks_name, "scopeName": self.resource.scope_ref.xml}
        self.run(_admintask(self, "deleteKeyStore", ("deleteKeyStore", params)))


class _CertificateProvider(BaseProvider):
    """Certificates living in a WAS managed key store."""

    def keystore(self) -> dict[str, str] | None:
        """Location, type and clear text password of the target key store.

        None when security.xml does not exist yet.
        """

        doc = self.read_config()
        if doc is None:
            return None
        resource = self.resource
        entry = find_keystore(doc, resource.scope_ref.xml, resource.key_store_name)  # type: ignore[attr-defined]
        if entry is None:
            # A certificate cannot live in a store that is gone.
            if resource.ensure is Ensure.ABSENT:
                return None
            raise ProviderError(
                f"KeyStore {resource.key_store_name} not found at scope {resource.scope_ref.xml}"  # type: ignore[attr-defined]
            )
        location = entry.get("location", "")
        if location.startswith(CONFIG_ROOT):
            location = str(resource.profile_root / "config") + location[len(CONFIG_ROOT):]
        return {
            "location": location,
            "type": entry.get("type", ""),
            "password": xor_decode(entry.get("password")) or "",
        }

    def discover(self) -> dict[str, Any] | None:
        store = self.keystore()
        if store is None:
            return None
        alias = self.resource.name
        output = self.runner.keytool(
            ["-list", "-storetype", store["type"], "-keystore", store["location"], "-alias", alias],
            self.target,
            store_password=store["password"],
        )
        if f"Alias <{alias}> does not exist" in output:
            return None
        if "Keystore file does not exist" in output:
            raise ProviderError(f"Unable to open KeyStore file {store['location']}")
        found = re.search(r"Certificate fingerprint \((SHA[\w-]*)\):\s*(\S+)", output)
        if found is None:
            raise ProviderError(f"An unexpected error has occured running keytool: {output.strip()}")
        return {"fingerprint": found.group(2), "fingerprint_algorithm": found.group(1)}


class PersonalCertProvider(_CertificateProvider):
    resource_type = PersonalCert
    label = "Personal Certificate"

    resource: PersonalCert

    def create(self) -> None:
        logger.info("Importing %s into %s", self.resource.identity(), self.resource.key_store_name)
        scope = self.resource.scope_ref.xml
        calls: list[tuple[str, dict[str, Any]]] = [
            (
                "importCertificate",
                {
                    "keyFilePath": self.resource.key_file_path,
                    "keyFilePassword": self.resource.key_file_pass or "",
                    "keyFileType": self.resource.key_file_type,
                    "certificateAliasFromKeyFile": self.resource.key_file_certalias,
                    "certificateAlias": self.resource.cert_alias,
                    "keyStoreName": self.resource.key_store_name,
                    "keyStoreScope": scope,
                },
            )
        ]
        if self.resource.replace_old_cert:
            calls.append(
                (
                    "replaceCertificate",
                    {
                        "keyStoreName": self.resource.key_store_name,
                        "keyStoreScope": scope,
                        "certificateAlias": self.resource.replace_old_cert,
                        "replacementCertificateAlias": self.resource.cert_alias,
                        "deleteOldCert": self.resource.delete_old_cert,
                        "deleteOldSigners": self.resource.delete_old_signers,
                    },
                )
            )
        self.run(_admintask(self, "importCertificate", *calls), creating=True)

    def modify(self) -> None:
        """Certificates have no mutable properties."""

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        params = {
            "keyStoreName": self.resource.key_store_name,
            "keyStoreScope": self.resource.scope_ref.xml,
            "certificateAlias": self.resource.cert_alias,
        }
        self.run(_admintask(self, "deleteCertificate", ("deleteCertificate", params)))


class SignerCertProvider(_CertificateProvider):
    resource_type = SignerCert
    label = "Signer Certificate"

    resource: SignerCert

    def create(self) -> None:
        logger.info("Adding %s to %s", self.resource.identity(), self.resource.key_store_name)
        params = {
            "keyStoreScope": self.resource.scope_ref.xml,
            "certificateAlias": self.resource.cert_alias,
            "keyStoreName": self.resource.key_store_name,
            "certificateFilePath": self.resource.cert_file_path,
            "base64Encoded": self.resource.base_64_encoded,
        }
        self.run(_admintask(self, "addSignerCertificate", ("addSignerCertificate", params)), creating=True)

    def modify(self) -> None:
        """Certificates have no mutable properties."""

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        params = {
            "keyStoreName": self.resource.key_store_name,
            "keyStoreScope": self.resource.scope_ref.xml,
            "certificateAlias": self.resource.cert_alias,
        }
        self.run(_admintask(self, "deleteSignerCertificate", ("deleteSignerCertificate", params)))


class SslConfigProvider(BaseProvider):
    resource_type = SslConfig
    label = "SSL Config"

    resource: SslConfig

    def _store(self, doc: ConfigDocument, store_id: str | None) -> tuple[str | None, str | None]:
        if not store_id:
            return None, None
        store = doc.by_id(store_id)
        if store is None:
            return None, None
        return store.get("name"), scope_type(doc, store.get("managementScope"))

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        scope_id = management_scope_id(doc, self.resource.scope_ref.xml)
        if scope_id is None:
            return None
        setting = doc.first(
            "/*/repertoire[@managementScope=$scope][@alias=$alias]/setting",
            scope=scope_id,
            alias=self.resource.conf_alias,
        )
        if setting is None:
            return None
        key_store, key_scope = self._store(doc, setting.get("keyStore"))
        trust_store, trust_scope = self._store(doc, setting.get("trustStore"))
        return {
            "key_store_name": key_store,
            "key_store_scope": key_scope,
            "trust_store_name": trust_store,
            "trust_store_scope": trust_scope,
            "server_key_alias": setting.get("serverKeyAlias", ""),
            "client_key_alias": setting.get("clientKeyAlias", ""),
            "client_auth_req": setting.get("clientAuthentication", "false"),
            "client_auth_supp": setting.get("clientAuthenticationSupported", "false"),
            "security_level": setting.get("securityLevel"),
            "enabled_ciphers": setting.get("enabledCiphers", ""),
            "ssl_protocol": setting.get("sslProtocol"),
            "jsse_provider": setting.get("jsseProvider"),
        }

    def _params(self) -> dict[str, Any]:
        resource = self.resource
        ref = resource.scope_ref
        params: dict[str, Any] = {
            "alias": resource.conf_alias,
            "scopeName": ref.xml,
            "keyStoreName": resource.key_store_name,
            "trustStoreName": resource.trust_store_name,
            "jsseProvider": resource.jsse_provider,
            "clientAuthentication": resource.client_auth_req,
            "clientAuthenticationSupported": resource.client_auth_supp,
            "securityLevel": resource.security_level,
            "sslProtocol": resource.ssl_protocol,
        }
        if resource.enabled_ciphers:
            params["enabledCiphers"] = resource.enabled_ciphers
        if resource.server_key_alias:
            params["serverKeyAlias"] = resource.server_key_alias
        if resource.client_key_alias:
            params["clientKeyAlias"] = resource.client_key_alias
        # Store scopes are only passed when they differ from the config's own.
        if resource.key_store_scope not in (None, resource.scope):
            params["keyStoreScopeName"] = ref.with_kind(resource.key_store_scope).xml
        if resource.trust_store_scope not in (None, resource.scope):
            params["trustStoreScopeName"] = ref.with_kind(resource.trust_store_scope).xml
        return params

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        params = {**self._params(), "type": self.resource.type}
        self.run(_admintask(self, "createSSLConfig", ("createSSLConfig", params)), creating=True)

    def modify(self) -> None:
        self.run(_admintask(self, "modifySSLConfig", ("modifySSLConfig", self._params())))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        params = {"alias": self.resource.conf_alias, "scopeName": self.resource.scope_ref.xml}
        self.run(_admintask(self, "deleteSSLConfig", ("deleteSSLConfig", params)))


class SslConfigGroupProvider(BaseProvider):
    resource_type = SslConfigGroup
    label = "SSL Config Group"

    resource: SslConfigGroup

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        scope_id = management_scope_id(doc, self.resource.scope_ref.xml)
        if scope_id is None:
            return None
        direction = as_text(self.resource.direction)
        entry = doc.first(
            "/*/sslConfigGroups[@managementScope=$scope][@direction=$direction][@name=$name]",
            scope=scope_id,
            direction=direction,
            name=self.resource.confgrp_alias,
        )
        if entry is None:
            return None
        ssl_config_name = ssl_config_scope = None
        repertoire = doc.by_id(entry.get("sslConfig", ""))
        if repertoire is not None:
            ssl_config_name = repertoire.get("alias")
            ssl_config_scope = scope_type(doc, repertoire.get("managementScope"))
        return {
            "ssl_config_name": ssl_config_name,
            "ssl_config_scope": ssl_config_scope,
            "client_cert_alias": entry.get("certificateAlias", ""),
        }

    def _identity_params(self) -> dict[str, Any]:
        return {
            "name": self.resource.confgrp_alias,
            "scopeName": self.resource.scope_ref.xml,
            "direction": self.resource.direction,
        }

    def _params(self) -> dict[str, Any]:
        config_scope = self.resource.ssl_config_scope or self.resource.scope or ScopeKind.CELL
        return {
            **self._identity_params(),
            "sslConfigScopeName": self.resource.scope_ref.with_kind(config_scope).xml,
            "sslConfigAliasName": self.resource.ssl_config_name,
            "certificateAlias": self.resource.client_cert_alias,
        }

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(_admintask(self, "createSSLConfigGroup", ("createSSLConfigGroup", self._params())), creating=True)

    def modify(self) -> None:
        self.run(_admintask(self, "modifySSLConfigGroup", ("modifySSLConfigGroup", self._params())))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(_admintask(self, "deleteSSLConfigGroup", ("deleteSSLConfigGroup", self._identity_params())))
