"""WebSphere MQ messaging provider objects (queues, topics, factories, activation specs)."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, ClassVar

from pydantic import Field, ValidationInfo, field_validator, model_validator

from core.domain.models import Ensure, SanitizedResource
from core.domain.titles import scoped_patterns
from core.services.insync import munge_keys


class _JmsDestination(SanitizedResource):
    jms_provider: str = Field(
        default="builtin_mqprovider",
        description="xmi:id of the JMS provider holding the destination.",
    )
    jndi_name: str | None = Field(default=None, description="JNDI name of the destination.")
    description: str | None = Field(default=None)
    custom_properties: dict[str, Any] | None = Field(
        default=None,
        description="Custom properties passed to the messaging provider.",
    )

    @field_validator("custom_properties", mode="before")
    @classmethod
    def _munge_custom(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, dict):
            raise ValueError("custom_properties property must be a hash")
        return munge_keys(value) if value is not None else None


class Queue(_JmsDestination):
    """WebSphere MQ messaging provider queue destination."""

    kind: ClassVar[str] = "queue"
    name_field: ClassVar[str] = "q_name"
    properties: ClassVar[tuple[str, ...]] = (
        "queue_name",
        "jndi_name",
        "description",
        "q_data",
        "custom_properties",
    )
    title_patterns = scoped_patterns("q_name")

    q_name: str = Field(..., min_length=1, description="Administrative name of the queue.")
    queue_name: str | None = Field(default=None, description="Name of the MQ queue.")
    q_data: dict[str, Any] | None = Field(
        default=None,
        description="Queue settings (createWMQQueue parameters).",
    )

    @field_validator("q_data", mode="before")
    @classmethod
    def _munge_data(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, dict):
            raise ValueError("q_data property must be a hash")
        return munge_keys(value) if value is not None else None

    def validate_kind(self) -> None:
        if self.ensure is Ensure.PRESENT and not self.queue_name:
            raise ValueError("queue_name property must not be empty")


class Topic(_JmsDestination):
    """WebSphere MQ messaging provider topic destination."""

    kind: ClassVar[str] = "topic"
    name_field: ClassVar[str] = "t_name"
    properties: ClassVar[tuple[str, ...]] = (
        "topic_name",
        "jndi_name",
        "description",
        "t_data",
        "custom_properties",
    )
    title_patterns = scoped_patterns("t_name")

    t_name: str = Field(..., min_length=1, description="Administrative name of the topic.")
    topic_name: str | None = Field(default=None, description="Name of the MQ topic.")
    t_data: dict[str, Any] | None = Field(
        default=None,
        description="Topic settings (createWMQTopic parameters).",
    )

    @field_validator("t_data", mode="before")
    @classmethod
    def _munge_data(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, dict):
            raise ValueError("t_data property must be a hash")
        return munge_keys(value) if value is not None else None

    def validate_kind(self) -> None:
        if self.ensure is Ensure.PRESENT and not self.topic_name:
            raise ValueError("topic_name property must not be empty")


class CfType(str, Enum):
    CF = "CF"
    QCF = "QCF"
    TCF = "TCF"


# qmgr_data keys that only make sense for one flavour of factory.
TOPIC_ONLY_KEYS = frozenset(
    {
        "brokerCtrlQueue",
        "brokerSubQueue",
        "brokerCCSubQueue",
        "brokerVersion",
        "brokerPubQueue",
        "tempTopicPrefix",
        "pubAckWindow",
        "subStore",
        "stateRefreshInt",
        "cleanupLevel",
        "sparseSubs",
        "wildcardFormat",
        "brokerQmgr",
        "clonedSubs",
        "msgSelection",
    }
)
QUEUE_ONLY_KEYS = frozenset({"msgRetention", "rescanInterval", "tempQueuePrefix", "modelQueue", "replyWithRFH2"})


class ConnectionFactory(SanitizedResource):
    """WebSphere MQ connection factory (CF, QCF or TCF)."""

    kind: ClassVar[str] = "cf"
    name_field: ClassVar[str] = "cf_name"
    properties: ClassVar[tuple[str, ...]] = (
        "cf_type",
        "jndi_name",
        "description",
        "qmgr_data",
        "conn_pool_data",
        "sess_pool_data",
        "mapping_data",
    )
    title_patterns = scoped_patterns("cf_name")

    cf_name: str = Field(..., min_length=1, description="Administrative name of the factory.")
    cf_type: CfType = Field(default=CfType.CF, description="CF, QCF or TCF.")
    jms_provider: str = Field(default="builtin_mqprovider")
    jndi_name: str | None = Field(default=None)
    description: str | None = Field(default=None)
    qmgr_data: dict[str, Any] | None = Field(
        default=None,
        description="Queue manager settings (createWMQConnectionFactory parameters).",
    )
    conn_pool_data: dict[str, Any] | None = Field(default=None, description="connectionPool attributes.")
    sess_pool_data: dict[str, Any] | None = Field(default=None, description="sessionPool attributes.")
    mapping_data: dict[str, Any] | None = Field(default=None, description="Authentication mapping attributes.")

    @field_validator("qmgr_data", "conn_pool_data", "sess_pool_data", "mapping_data", mode="before")
    @classmethod
    def _munge_hashes(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError(f"{info.field_name} property must be a hash")
        return munge_keys(value)

    def validate_kind(self) -> None:
        if self.ensure is not Ensure.PRESENT:
            return
        if not self.qmgr_data:
            raise ValueError("qmgr_data property cannot be empty")
        for key, value in self.qmgr_data.items():
            if self.cf_type is CfType.QCF and key in TOPIC_ONLY_KEYS:
                raise ValueError(
                    f"Argument error in qmgr_data: parameter {key} with value {value} is incompatible with type QCF"
                )
            if self.cf_type is CfType.TCF and key in QUEUE_ONLY_KEYS:
                raise ValueError(
                    f"Argument error in qmgr_data: parameter {key} with value {value} is incompatible with type TCF"
                )


class QueueConnectionFactory(ConnectionFactory):
    """Legacy queue connection factory: a `cf` pinned to type QCF."""

    kind: ClassVar[str] = "qcf"

    cf_type: CfType = Field(default=CfType.QCF, description="Always QCF.")

    @model_validator(mode="before")
    @classmethod
    def _accept_qcf_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and "qcf_name" in data:
            data = dict(data)
            qcf_name = data.pop("qcf_name")
            data.setdefault("cf_name", qcf_name)
        return data

    @field_validator("cf_type", mode="after")
    @classmethod
    def _only_qcf(cls, value: CfType) -> CfType:
        if value is not CfType.QCF:
            raise ValueError("qcf resources are always of type QCF")
        return value


class DestinationType(str, Enum):
    QUEUE = "javax.jms.Queue"
    TOPIC = "javax.jms.Topic"


_CCDT_CONFLICT = re.compile(r"^(qmgr|local)\w+")


class ActivationSpec(SanitizedResource):
    """WebSphere MQ activation specification."""

    kind: ClassVar[str] = "activationspec"
    name_field: ClassVar[str] = "as_name"
    properties: ClassVar[tuple[str, ...]] = (
        "jndi_name",
        "description",
        "destination_type",
        "destination_jndi",
        "qmgr_data",
    )
    title_patterns = scoped_patterns("as_name")

    as_name: str = Field(..., min_length=1, description="Administrative name of the activation spec.")
    jms_provider: str = Field(default="builtin_mqprovider")
    jndi_name: str | None = Field(default=None)
    description: str | None = Field(default=None)
    destination_type: DestinationType = Field(default=DestinationType.QUEUE)
    destination_jndi: str | None = Field(default=None, description="JNDI name of the destination.")
    qmgr_data: dict[str, Any] | None = Field(default=None, description="createWMQActivationSpec parameters.")

    @field_validator("qmgr_data", mode="before")
    @classmethod
    def _munge_qmgr(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("qmgr_data property must be a hash")
        return munge_keys(value)

    def validate_kind(self) -> None:
        if self.ensure is not Ensure.PRESENT:
            return
        if not self.qmgr_data:
            raise ValueError("qmgr_data property cannot be empty")
        if not self.destination_jndi:
            raise ValueError("destination_jndi is required")
        ccdt = [k for k in self.qmgr_data if k.startswith("ccdt")]
        clashing = [k for k in self.qmgr_data if _CCDT_CONFLICT.match(k)]
        if ccdt and clashing:
            raise ValueError(f"qmgr_data {ccdt[0]} is incompatible with {clashing[0]}")
