"""WebSphere MQ messaging provider objects (resources.xml)."""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Mapping

from lxml import etree

from adapters.providers.base import BaseProvider
from adapters.was_xml import ConfigDocument, attributes, resource_properties
from core.domain.errors import ProviderError
from core.domain.resources.jms import (
    ActivationSpec,
    CfType,
    ConnectionFactory,
    Queue,
    QueueConnectionFactory,
    Topic,
)


logger = logging.getLogger(__name__)

# XML attribute values -> AdminTask parameter values.
DESTINATION_VALUES = {
    "APPLICATION_DEFINED": "APP",
    "QUEUE_DEFINED": "QDEF",
    "PERSISTENT": "PERS",
    "NONPERSISTENT": "NON",
}

# XML attribute names -> AdminTask parameter names.
QUEUE_KEYS = {"CCSID": "ccsid", "baseQueueName": "queueName"}
TOPIC_KEYS = {"CCSID": "ccsid", "baseTopicName": "topicName"}
CF_KEYS = {
    "connameList": "connectionNameList",
    "host": "qmgrHostName",
    "port": "qmgrPortNumber",
    "queueManager": "qmgrName",
    "channel": "qmgrSvrconnChannel",
    "transportType": "wmqTransportType",
    "tempModel": "modelQueue",
    "CCSID": "ccsid",
    "clientID": "clientId",
}
AS_KEYS = {
    **{k: v for k, v in CF_KEYS.items() if k != "tempModel"},
    "failIfQuiesce": "failIfQuiescing",
    "brokerControlQueue": "brokerCtrlQueue",
    "subscriptionStore": "subStore",
    "statusRefreshInterval": "stateRefreshInt",
    "sparseSubscriptions": "sparseSub",
    "cloneSupport": "clonedSubs",
    "was_stopEndpointIfDeliveryFails": "stopEndpointIfDeliveryFails",
    "was_failureDeliveryCount": "failureDeliveryCount",
    "maxPoolDepth": "maxPoolSize",
}

CF_XMI_TYPES = {
    "resources.jms.mqseries:MQConnectionFactory": CfType.CF,
    "resources.jms.mqseries:MQQueueConnectionFactory": CfType.QCF,
    "resources.jms.mqseries:MQTopicConnectionFactory": CfType.TCF,
}

MQ_ADAPTER = "WebSphere MQ Resource Adapter"


def translate(data: Mapping[str, str], keys: Mapping[str, str], values: Mapping[str, str] | None = None) -> dict[str, str]:
    values = values or {}
    return {keys.get(k, k): values.get(v, v) for k, v in data.items()}


def _without_xmi(data: Mapping[str, str]) -> dict[str, str]:
    return {k: v for k, v in data.items() if not k.startswith("xmi:")}


def _optional(**values: Any) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class _WmqProvider(BaseProvider):
    """Shared create/modify/delete flow of the `*WMQ*` AdminTask commands."""

    object_label: ClassVar[str] = ""
    create_command: ClassVar[str] = ""
    modify_command: ClassVar[str] = ""
    delete_command: ClassVar[str] = ""
    list_command: ClassVar[str] = ""

    def jms_provider(self, doc: ConfigDocument) -> etree._Element | None:
        return doc.first(
            "//*[local-name()='JMSProvider'][@xmi:id=$provider]",
            provider=self.resource.jms_provider,  # type: ignore[attr-defined]
        )

    def create_params(self) -> dict[str, Any]:
        raise NotImplementedError

    def modify_params(self) -> dict[str, Any]:
        return self.create_params()

    def pools(self) -> dict[str, dict[str, Any]]:
        return {}

    def custom_properties(self) -> dict[str, Any]:
        return {}

    def _script(self, action: str, command: str, params: Mapping[str, Any] | None = None) -> str:
        return self.render(
            "wmq",
            action=action,
            command=command,
            list_command=self.list_command,
            object_label=self.object_label,
            scope=self.resource.scope_ref.query,  # type: ignore[attr-defined]
            name=self.resource.name,
            params=params or {},
            pools=self.pools() if action != "delete" else {},
            custom_properties=self.custom_properties() if action != "delete" else {},
        )

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(self._script("create", self.create_command, self.create_params()), creating=True)

    def modify(self) -> None:
        # WAS re-validates the full parameter set on modify, so every declared
        # value is sent, not only the drifted ones.
        self.run(self._script("modify", self.modify_command, self.modify_params()))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete", self.delete_command))


class QueueProvider(_WmqProvider):
    resource_type = Queue
    label = "Queue"
    object_label = "MQQueue"
    create_command = "createWMQQueue"
    modify_command = "modifyWMQQueue"
    delete_command = "deleteWMQQueue"
    list_command = "listWMQQueues"

    xmi_type: ClassVar[str] = "resources.jms.mqseries:MQQueue"
    keys: ClassVar[Mapping[str, str]] = QUEUE_KEYS
    base_name_param: ClassVar[str] = "queueName"
    data_field: ClassVar[str] = "q_data"
    base_name_field: ClassVar[str] = "queue_name"

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        provider = self.jms_provider(doc)
        if provider is None:
            return None
        entry = doc.first(
            "factories[@xmi:type=$type][@name=$name]",
            provider,
            type=self.xmi_type,
            name=self.resource.name,
        )
        if entry is None:
            return None
        data = translate(_without_xmi(doc.attributes(entry)), self.keys, DESTINATION_VALUES)
        return {
            self.base_name_field: data.get(self.base_name_param),
            "jndi_name": data.get("jndiName"),
            "description": data.get("description"),
            self.data_field: data,
            "custom_properties": resource_properties(doc, entry),
        }

    def create_params(self) -> dict[str, Any]:
        resource = self.resource
        params = _optional(
            name=resource.name,
            jndiName=resource.jndi_name,  # type: ignore[attr-defined]
            description=resource.description,  # type: ignore[attr-defined]
        )
        params[self.base_name_param] = getattr(resource, self.base_name_field)
        params.update(getattr(resource, self.data_field) or {})
        return params

    def custom_properties(self) -> dict[str, Any]:
        return dict(self.resource.custom_properties or {})  # type: ignore[attr-defined]


class TopicProvider(QueueProvider):
    resource_type = Topic
    label = "Topic"
    object_label = "MQTopic"
    create_command = "createWMQTopic"
    modify_command = "modifyWMQTopic"
    delete_command = "deleteWMQTopic"
    list_command = "listWMQTopics"

    xmi_type = "resources.jms.mqseries:MQTopic"
    keys = TOPIC_KEYS
    base_name_param = "topicName"
    data_field = "t_data"
    base_name_field = "topic_name"


class ConnectionFactoryProvider(_WmqProvider):
    resource_type = ConnectionFactory
    label = "Connection Factory"
    object_label = "MQConnectionFactory"
    create_command = "createWMQConnectionFactory"
    modify_command = "modifyWMQConnectionFactory"
    delete_command = "deleteWMQConnectionFactory"
    list_command = "listWMQConnectionFactories"

    resource: ConnectionFactory

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        provider = self.jms_provider(doc)
        if provider is None:
            return None
        entry = doc.first("factories[@name=$name]", provider, name=self.resource.name)
        if entry is None:
            return None
        raw = doc.attributes(entry)
        cf_type = CF_XMI_TYPES.get(raw.get("xmi:type", ""))
        if cf_type is None:
            raise ProviderError(
                f"{self.resource.name} exists in {self.resource.jms_provider} but is a {raw.get('xmi:type')}"
            )
        data = translate(_without_xmi(raw), CF_KEYS)
        return {
            "cf_type": cf_type.value,
            "jndi_name": data.get("jndiName"),
            "description": data.get("description"),
            "qmgr_data": data,
            "conn_pool_data": attributes(doc.first("connectionPool", entry)),
            "sess_pool_data": attributes(doc.first("sessionPool", entry)),
            "mapping_data": attributes(doc.first("mapping", entry)),
        }

    def create_params(self) -> dict[str, Any]:
        params = _optional(
            name=self.resource.cf_name,
            jndiName=self.resource.jndi_name,
            type=self.resource.cf_type.value,
            description=self.resource.description,
        )
        params.update(self.resource.qmgr_data or {})
        return params

    def modify_params(self) -> dict[str, Any]:
        params = self.create_params()
        params.pop("type", None)
        return params

    def pools(self) -> dict[str, dict[str, Any]]:
        return {
            "connectionPool": dict(self.resource.conn_pool_data or {}),
            "sessionPool": dict(self.resource.sess_pool_data or {}),
            "mapping": dict(self.resource.mapping_data or {}),
        }

    def modify(self) -> None:
        if "cf_type" in self.property_flush:
            raise ProviderError(
                f"Cannot change the type of {self.resource.cf_name} from "
                f"{self.get('cf_type')} to {self.resource.cf_type.value}; remove it first"
            )
        super().modify()


class QueueConnectionFactoryProvider(ConnectionFactoryProvider):
    resource_type = QueueConnectionFactory
    label = "Queue Connection Factory"


class ActivationSpecProvider(_WmqProvider):
    resource_type = ActivationSpec
    label = "Activation Spec"
    object_label = "J2CActivationSpec"
    create_command = "createWMQActivationSpec"
    modify_command = "modifyWMQActivationSpec"
    delete_command = "deleteWMQActivationSpec"
    list_command = "listWMQActivationSpecs"

    resource: ActivationSpec

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        adapter = doc.first("//*[local-name()='J2CResourceAdapter'][@name=$name]", name=MQ_ADAPTER)
        if adapter is None:
            return None
        entry = doc.first("j2cActivationSpec[@name=$name]", adapter, name=self.resource.name)
        if entry is None:
            return None

        data = translate(_without_xmi(doc.attributes(entry)), AS_KEYS)
        for prop in doc.xpath("resourceProperties", entry):
            name, value = prop.get("name"), prop.get("value", "")
            if not name:
                continue
            if name == "arbitraryProperties":
                # was_stopEndpointIfDeliveryFails="false",sslType="SPECIFIC",...
                for item in filter(None, value.split(",")):
                    key, _, val = item.partition("=")
                    data[AS_KEYS.get(key.strip(), key.strip())] = val.replace('"', "")
            else:
                data[AS_KEYS.get(name, name)] = value
        return {
            "jndi_name": data.get("jndiName"),
            "description": data.get("description"),
            "destination_type": data.get("destinationType"),
            "destination_jndi": data.get("destinationJndiName") or data.get("destination"),
            "qmgr_data": data,
        }

    def create_params(self) -> dict[str, Any]:
        params = _optional(
            name=self.resource.as_name,
            jndiName=self.resource.jndi_name,
            destinationType=self.resource.destination_type.value,
            destinationJndiName=self.resource.destination_jndi,
            description=self.resource.description,
        )
        params.update(self.resource.qmgr_data or {})
        return params
