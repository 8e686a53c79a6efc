"""JDBC data sources."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field, field_validator

from core.domain.models import Ensure, SanitizedResource
from core.domain.titles import scoped_patterns
from core.services.insync import munge_keys


DB2_HELPER = "com.ibm.websphere.rsadapter.DB2UniversalDataStoreHelper"
MSSQL_HELPER = "com.ibm.websphere.rsadapter.MicrosoftSQLServerDataStoreHelper"
ORACLE_HELPER = "com.ibm.websphere.rsadapter.Oracle11gDataStoreHelper"
SUPPORTED_HELPERS = (DB2_HELPER, MSSQL_HELPER, ORACLE_HELPER)


class JdbcDatasource(SanitizedResource):
    """A data source under an existing JDBC provider."""

    kind: ClassVar[str] = "jdbc_datasource"
    name_field: ClassVar[str] = "ds_name"
    properties: ClassVar[tuple[str, ...]] = (
        "component_managed_auth_alias",
        "xa_recovery_auth_alias",
        "mapping_configuration_alias",
        "container_managed_auth_alias",
        "conn_pool_data",
        "url",
    )
    title_patterns = scoped_patterns("ds_name")

    ds_name: str = Field(..., min_length=1, description="Data source name.")
    jdbc_provider: str = Field(..., min_length=1, description="Name of the JDBC provider.")
    jndi_name: str | None = Field(default=None)
    data_store_helper_class: str = Field(default=DB2_HELPER)
    container_managed_persistence: bool = Field(default=True)
    component_managed_auth_alias: str = Field(default="")
    xa_recovery_auth_alias: str = Field(default="")
    mapping_configuration_alias: str = Field(default="")
    container_managed_auth_alias: str = Field(default="")
    conn_pool_data: dict[str, Any] | None = Field(default=None, description="connectionPool attributes.")
    url: str = Field(default="", description="JDBC URL (Oracle).")
    description: str | None = Field(default=None)
    db2_driver: int | None = Field(default=None, description="DB2 driver type (2 or 4).")
    database: str | None = Field(default=None)
    db_server: str | None = Field(default=None)
    db_port: int | None = Field(default=None)

    @field_validator("conn_pool_data", mode="before")
    @classmethod
    def _munge_pool(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("conn_pool_data property must be a hash")
        return munge_keys(value)

    def validate_kind(self) -> None:
        if self.data_store_helper_class not in SUPPORTED_HELPERS:
            raise ValueError(f"Unsupported Helper Class: {self.data_store_helper_class}")
        if self.ensure is Ensure.PRESENT and not self.jndi_name:
            raise ValueError("jndi_name is required")

    def resource_properties(self) -> list[tuple[str, str, str]]:
        """(name, java type, value) triples for `-configureResourceProperties`."""

        if self.data_store_helper_class == DB2_HELPER:
            return [
                ("databaseName", "java.lang.String", self.database or ""),
                ("driverType", "java.lang.Integer", str(self.db2_driver or "")),
                ("serverName", "java.lang.String", self.db_server or ""),
                ("portNumber", "java.lang.Integer", str(self.db_port or "")),
            ]
        if self.data_store_helper_class == MSSQL_HELPER:
            return [
                ("databaseName", "java.lang.String", self.database or ""),
                ("serverName", "java.lang.String", self.db_server or ""),
                ("portNumber", "java.lang.Integer", str(self.db_port or "")),
            ]
        return [("URL", "java.lang.String", self.url)]
