"""Resource kinds, keyed by the `kind` used in manifests."""

from __future__ import annotations

from core.domain.models import WebSphereResource
from core.domain.resources.jdbc import JdbcDatasource
from core.domain.resources.jms import ActivationSpec, ConnectionFactory, Queue, QueueConnectionFactory, Topic
from core.domain.resources.security import (
    AuthAlias,
    GlobalSecurity,
    Group,
    Interceptor,
    JaasLogin,
    TrustAssociation,
    User,
)
from core.domain.resources.ssl import KeyStore, PersonalCert, SignerCert, SslConfig, SslConfigGroup
from core.domain.resources.web import HostAlias, JvmClassloader, TransportChain, VirtualHost


RESOURCE_TYPES: dict[str, type[WebSphereResource]] = {
    cls.kind: cls
    for cls in (
        Queue,
        Topic,
        ConnectionFactory,
        QueueConnectionFactory,
        ActivationSpec,
        JdbcDatasource,
        User,
        Group,
        AuthAlias,
        JaasLogin,
        TrustAssociation,
        Interceptor,
        GlobalSecurity,
        KeyStore,
        PersonalCert,
        SignerCert,
        SslConfig,
        SslConfigGroup,
        VirtualHost,
        HostAlias,
        TransportChain,
        JvmClassloader,
    )
}


def resource_type(kind: str) -> type[WebSphereResource]:
    try:
        return RESOURCE_TYPES[kind]
    except KeyError:
        known = ", ".join(sorted(RESOURCE_TYPES))
        raise KeyError(f"Unknown kind {kind!r} (known: {known})") from None
