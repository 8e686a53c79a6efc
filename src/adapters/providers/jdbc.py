"""JDBC data sources (resources.xml)."""

from __future__ import annotations

import logging
from typing import Any

from adapters.providers.base import BaseProvider
from core.domain.resources.jdbc import JdbcDatasource
from core.domain.scope import ScopeKind


logger = logging.getLogger(__name__)


class JdbcDatasourceProvider(BaseProvider):
    resource_type = JdbcDatasource
    label = "JDBC Data Source"

    resource: JdbcDatasource

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        provider = doc.first(
            "//*[local-name()='JDBCProvider'][@name=$name]",
            name=self.resource.jdbc_provider,
        )
        if provider is None:
            return None
        entry = doc.first(
            "factories[@xmi:type='resources.jdbc:DataSource'][@name=$name]",
            provider,
            name=self.resource.ds_name,
        )
        if entry is None:
            return None
        mapping = doc.attributes(doc.first("mapping", entry))
        pool = {k: v for k, v in doc.attributes(doc.first("connectionPool", entry)).items() if not k.startswith("xmi:")}
        return {
            "jndi_name": entry.get("jndiName"),
            "component_managed_auth_alias": entry.get("authDataAlias", ""),
            "xa_recovery_auth_alias": entry.get("xaRecoveryAuthAlias", ""),
            "mapping_configuration_alias": mapping.get("mappingConfigAlias", ""),
            "container_managed_auth_alias": mapping.get("authDataAlias", ""),
            "conn_pool_data": pool,
            "url": doc.text("propertySet/resourceProperties[@name='URL']/@value", entry) or "",
        }

    def _script(self, action: str) -> str:
        resource = self.resource
        other: dict[str, Any] = {}
        if action == "create":
            other["containerManagedPersistence"] = resource.container_managed_persistence
        if resource.description is not None:
            other["description"] = resource.description
        return self.render(
            "jdbc",
            action=action,
            scope=resource.scope_ref.query,
            provider=resource.jdbc_provider,
            name=resource.ds_name,
            jndi_name=resource.jndi_name,
            helper=resource.data_store_helper_class,
            cmp=resource.container_managed_persistence,
            other_attrs=other,
            resource_props=[list(prop) for prop in resource.resource_properties()],
            pool=dict(resource.conn_pool_data or {}),
            mapping_alias=resource.mapping_configuration_alias,
            container_auth_alias=resource.container_managed_auth_alias,
            component_auth_alias=resource.component_managed_auth_alias,
            xa_recovery_alias=resource.xa_recovery_auth_alias,
        )

    def sync_node(self) -> None:
        """Push the change to the node agent for node and server scoped sources."""

        if self.resource.scope not in (ScopeKind.NODE, ScopeKind.SERVER):
            return
        self.runner.sync_node(self.target, str(self.resource.node_name))

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(self._script("create"), creating=True)
        self.sync_node()

    def modify(self) -> None:
        self.run(self._script("modify"))
        self.sync_node()

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete"))
        self.sync_node()
