"""Virtual hosts, host aliases, transport chains and JVM classloaders."""

from __future__ import annotations

import logging
import re
from typing import Any

from lxml import etree

from adapters.providers.base import BaseProvider
from adapters.was_xml import ConfigDocument
from core.domain.errors import ProviderError
from core.domain.resources.web import HostAlias, JvmClassloader, TransportChain, VirtualHost
from core.domain.scope import ScopeKind
from core.services.insync import array_insync


logger = logging.getLogger(__name__)

DEFAULT_PORT = "80"

# transportChannels id prefix -> property holding its attributes.
CHANNEL_PROPERTIES = {
    "TCPInboundChannel": "tcp_inbound_channel",
    "SSLInboundChannel": "ssl_inbound_channel",
    "HTTPInboundChannel": "http_inbound_channel",
    "WebContainerInboundChannel": "wcc_inbound_channel",
}


def find_virtual_host(doc: ConfigDocument, name: str) -> etree._Element | None:
    return doc.first("//*[local-name()='VirtualHost'][@name=$name]", name=name)


class VirtualHostProvider(BaseProvider):
    resource_type = VirtualHost
    label = "Virtual Host"

    resource: VirtualHost

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        vhost = find_virtual_host(doc, self.resource.vhost)
        if vhost is None:
            return None
        # WAS leaves the port out of the file when it is the default.
        aliases = [(a.get("hostname", ""), a.get("port", DEFAULT_PORT)) for a in doc.xpath("aliases", vhost)]
        return {"alias_list": aliases}

    def _script(self, action: str) -> str:
        return self.render(
            "virtualhost",
            action=action,
            scope=self.resource.scope_ref.query,
            name=self.resource.vhost,
            aliases=list(self.resource.alias_list or []),
        )

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(self._script("create"), creating=True)

    def modify(self) -> None:
        self.run(self._script("modify"))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete"))


class HostAliasProvider(BaseProvider):
    resource_type = HostAlias
    label = "Host Alias"

    resource: HostAlias

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        vhost = find_virtual_host(doc, self.resource.virtual_host)
        if vhost is None:
            return None
        port = str(self.resource.portnumber)
        if port == DEFAULT_PORT:
            expr = "aliases[@hostname=$host][not(@port) or @port=$port]"
        else:
            expr = "aliases[@hostname=$host][@port=$port]"
        entry = doc.first(expr, vhost, host=self.resource.hostname, port=port)
        if entry is None:
            return None
        return {
            "hostname": entry.get("hostname"),
            "portnumber": entry.get("port", DEFAULT_PORT),
            "alias_id": entry.get(f"{{{doc.namespaces['xmi']}}}id"),
        }

    def _script(self, action: str, alias_id: str = "") -> str:
        return self.render(
            "hostalias",
            action=action,
            vhost_path=f"{self.resource.scope_ref.query}/VirtualHost:{self.resource.virtual_host}/",
            hostname=self.resource.hostname,
            port=self.resource.portnumber,
            alias_id=alias_id,
        )

    def create(self) -> None:
        logger.info("Creating %s in %s", self.resource.identity(), self.resource.virtual_host)
        self.run(self._script("create"), creating=True)

    def modify(self) -> None:
        """Host and port are the identity; nothing else to change."""

    def destroy(self) -> None:
        alias_id = self.get("alias_id")
        if not alias_id:
            raise ProviderError(f"Cannot find the configuration id of {self.resource.identity()}")
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete", f"({self.resource.scope_ref.mod}|virtualhosts.xml#{alias_id})"))


class TransportChainProvider(BaseProvider):
    resource_type = TransportChain
    label = "Transport Chain"

    resource: TransportChain

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        service = doc.first("/*/services[@xmi:type='channelservice:TransportChannelService']")
        if service is None:
            return None
        chain = doc.first("chains[@name=$name]", service, name=self.resource.tc_name)
        if chain is None:
            return None
        state: dict[str, Any] = {"enabled": chain.get("enable", "true")}
        for channel_id in chain.get("transportChannels", "").split():
            prefix = re.sub(r"_\d+$", "", channel_id)
            prop = CHANNEL_PROPERTIES.get(prefix)
            if prop is None:
                continue
            channel = doc.first("transportChannels[@xmi:id=$id]", service, id=channel_id)
            state[prop] = {k: v for k, v in doc.attributes(channel).items() if not k.startswith("xmi:")}
        state["endpoint_name"] = (state.get("tcp_inbound_channel") or {}).get("endPointName")
        return state

    def _channels(self) -> dict[str, dict[str, Any]]:
        channels = {}
        for prefix, prop in CHANNEL_PROPERTIES.items():
            attrs = dict(getattr(self.resource, prop) or {})
            if prop == "tcp_inbound_channel":
                attrs["endPointName"] = self.resource.endpoint_name
            channels[prefix] = attrs
        return channels

    def _script(self, action: str) -> str:
        ref = self.resource.scope_ref
        return self.render(
            "transportchain",
            action=action,
            scope=ref.query,
            node_scope=ref.with_kind(ScopeKind.NODE).query + "/",
            name=self.resource.tc_name,
            chain_template=self.resource.template,
            enabled=self.resource.enabled,
            endpoint_name=self.resource.endpoint_name,
            endpoint_details=list(self.resource.endpoint_details) if self.resource.endpoint_details else None,
            channels=self._channels() if action != "delete" else {},
        )

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(self._script("create"), creating=True)

    def modify(self) -> None:
        self.run(self._script("modify"))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete"))


class JvmClassloaderProvider(BaseProvider):
    """Shared library references on the best matching classloader.

    A server can carry several classloaders of the same mode. The one
    missing the fewest of the declared libraries is the one managed;
    the object counts as present when any declared library is already
    referenced by a classloader of that mode.
    """

    resource_type = JvmClassloader
    label = "Classloader"

    resource: JvmClassloader

    def discover(self) -> dict[str, Any] | None:
        doc = self.read_config()
        if doc is None:
            return None
        appserver = doc.first("/*/components[@xmi:type='applicationserver:ApplicationServer']")
        if appserver is None:
            return None
        wanted = set(self.resource.shared_libs)
        combined: set[str] = set()
        target: tuple[int, str, list[str]] | None = None
        for loader in doc.xpath("classloaders[@mode=$mode]", appserver, mode=self.resource.mode.value):
            libs = [str(lib) for lib in doc.xpath("libraries/@libraryName", loader)]
            combined.update(libs)
            missing = len(wanted - set(libs))
            if target is None or missing < target[0]:
                target = (missing, loader.get(f"{{{doc.namespaces['xmi']}}}id", ""), libs)
        if target is None or not (wanted & combined):
            return None
        return {"classloader_id": target[1], "mode": self.resource.mode.value, "shared_libs": target[2]}

    def insync(self, prop: str) -> bool:
        if prop != "shared_libs":
            return super().insync(prop)
        current = self.get("shared_libs") or []
        if self.resource.enforce_shared_libs:
            return array_insync(current, self.resource.shared_libs)
        return set(self.resource.shared_libs) <= set(current)

    def _script(self, action: str, add: list[str], remove: list[str]) -> str:
        ref = self.resource.scope_ref
        loader_id = self.get("classloader_id")
        return self.render(
            "classloader",
            action=action,
            appserver_path=f"{ref.query}/ApplicationServer:/",
            classloader_id=f"({ref.mod}|server.xml#{loader_id})" if loader_id else "",
            mode=self.resource.mode,
            add_libs=add,
            remove_libs=remove,
        )

    def create(self) -> None:
        logger.info("Creating %s", self.resource.identity())
        self.run(self._script("create", list(self.resource.shared_libs), []), creating=True)

    def modify(self) -> None:
        current = self.get("shared_libs") or []
        add = [lib for lib in self.resource.shared_libs if lib not in current]
        remove = []
        if self.resource.enforce_shared_libs:
            remove = sorted(set(current) - set(self.resource.shared_libs))
        self.run(self._script("modify", add, remove))

    def destroy(self) -> None:
        logger.info("Removing %s", self.resource.identity())
        self.run(self._script("delete", [], []))
