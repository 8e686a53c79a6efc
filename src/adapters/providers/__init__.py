"""wsadmin backed providers, one per resource kind."""

from __future__ import annotations

from adapters.providers.base import BaseProvider
from adapters.providers.jdbc import JdbcDatasourceProvider
from adapters.providers.jms import (
    ActivationSpecProvider,
    ConnectionFactoryProvider,
    QueueConnectionFactoryProvider,
    QueueProvider,
    TopicProvider,
)
from adapters.providers.security import (
    AuthAliasProvider,
    GlobalSecurityProvider,
    GroupProvider,
    InterceptorProvider,
    JaasLoginProvider,
    TrustAssociationProvider,
    UserProvider,
)
from adapters.providers.ssl import (
    KeyStoreProvider,
    PersonalCertProvider,
    SignerCertProvider,
    SslConfigGroupProvider,
    SslConfigProvider,
)
from adapters.providers.web import (
    HostAliasProvider,
    JvmClassloaderProvider,
    TransportChainProvider,
    VirtualHostProvider,
)
from core.config import AppSettings
from core.domain.errors import ProviderError
from core.domain.models import WebSphereResource
from core.interfaces.runner import ScriptRunner


PROVIDERS: dict[str, type[BaseProvider]] = {
    cls.resource_type.kind: cls
    for cls in (
        QueueProvider,
        TopicProvider,
        ConnectionFactoryProvider,
        QueueConnectionFactoryProvider,
        ActivationSpecProvider,
        JdbcDatasourceProvider,
        UserProvider,
        GroupProvider,
        AuthAliasProvider,
        JaasLoginProvider,
        TrustAssociationProvider,
        InterceptorProvider,
        GlobalSecurityProvider,
        KeyStoreProvider,
        PersonalCertProvider,
        SignerCertProvider,
        SslConfigProvider,
        SslConfigGroupProvider,
        VirtualHostProvider,
        HostAliasProvider,
        TransportChainProvider,
        JvmClassloaderProvider,
    )
}

__all__ = ["BaseProvider", "PROVIDERS", "provider_for"]


def provider_for(
    resource: WebSphereResource,
    runner: ScriptRunner,
    settings: AppSettings | None = None,
) -> BaseProvider:
    """Instantiate the provider that manages `resource`."""

    try:
        provider_cls = PROVIDERS[resource.kind]
    except KeyError:
        raise ProviderError(f"No provider for kind {resource.kind!r}") from None
    return provider_cls(resource, runner, settings)
