import pytest

from adapters.providers import provider_for
from core.domain.errors import ProviderError
from core.domain.resources.web import HostAlias, JvmClassloader, TransportChain, VirtualHost


VIRTUALHOSTS = """<?xml version="1.0" encoding="UTF-8"?>
<xmi:XMI xmi:version="2.0" xmlns:xmi="http://www.omg.org/XMI" xmlns:host="http://www.ibm.com/websphere/appserver/schemas/5.0/host.xmi">
  <host:VirtualHost xmi:id="VirtualHost_1" name="default_host">
    <aliases xmi:id="HostAlias_1" hostname="*" port="9080"/>
    <aliases xmi:id="HostAlias_2" hostname="*"/>
    <aliases xmi:id="HostAlias_3" hostname="*" port="9443"/>
  </host:VirtualHost>
  <host:VirtualHost xmi:id="VirtualHost_2" name="admin_host">
    <aliases xmi:id="HostAlias_4" hostname="*" port="9060"/>
  </host:VirtualHost>
</xmi:XMI>
"""

SERVER = """<?xml version="1.0" encoding="UTF-8"?>
<process:Server xmi:version="2.0" xmlns:xmi="http://www.omg.org/XMI" xmlns:process="http://www.ibm.com/websphere/appserver/schemas/5.0/process.xmi" xmlns:applicationserver="http://www.ibm.com/websphere/appserver/schemas/5.0/applicationserver.xmi" xmlns:channelservice="http://www.ibm.com/websphere/appserver/schemas/6.0/channelservice.xmi" xmi:id="Server_1" name="AppSrv01">
  <services xmi:type="channelservice:TransportChannelService" xmi:id="TransportChannelService_1" enable="true">
    <transportChannels xmi:type="channelservice.channels:TCPInboundChannel" xmi:id="TCPInboundChannel_2" name="TCP_2" endPointName="WC_defaulthost_secure" maxOpenConnections="20000"/>
    <transportChannels xmi:type="channelservice.channels:SSLInboundChannel" xmi:id="SSLInboundChannel_1" name="SSL_2" discriminationWeight="1"/>
    <transportChannels xmi:type="channelservice.channels:HTTPInboundChannel" xmi:id="HTTPInboundChannel_2" name="HTTP_4" keepAlive="true" maximumPersistentRequests="100"/>
    <transportChannels xmi:type="channelservice.channels:WebContainerInboundChannel" xmi:id="WebContainerInboundChannel_2" name="WCC_4" writeBufferSize="32768"/>
    <chains xmi:id="Chain_2" name="WCInboundDefaultSecure" enable="true" transportChannels="TCPInboundChannel_2 SSLInboundChannel_1 HTTPInboundChannel_2 WebContainerInboundChannel_2"/>
  </services>
  <components xmi:type="applicationserver:ApplicationServer" xmi:id="ApplicationServer_1">
    <classloaders xmi:id="Classloader_1" mode="PARENT_LAST">
      <libraries xmi:id="LibraryRef_1" libraryName="commons" sharedClassloader="true"/>
    </classloaders>
    <classloaders xmi:id="Classloader_2" mode="PARENT_LAST">
      <libraries xmi:id="LibraryRef_2" libraryName="commons" sharedClassloader="true"/>
      <libraries xmi:id="LibraryRef_3" libraryName="logging" sharedClassloader="true"/>
    </classloaders>
    <classloaders xmi:id="Classloader_3" mode="PARENT_FIRST"/>
  </components>
</process:Server>
"""

SERVER_PATH = "cells/CELL_01/nodes/NODE_01/servers/AppSrv01/server.xml"


@pytest.fixture
def web(profile):
    profile.write_cell("virtualhosts.xml", VIRTUALHOSTS)
    profile.write(SERVER_PATH, SERVER)
    return profile


def _server_scope(profile, **extra):
    return profile.common(scope="server", node_name="NODE_01", server="AppSrv01", **extra)


def test_virtual_host_defaults_port_80(web, runner, settings):
    vhost = VirtualHost(**web.common(vhost="default_host", alias_list=["*:9080", ["*", 80], {"hostname": "*", "port": 9443}]))
    provider = provider_for(vhost, runner, settings)
    assert provider.exists()
    assert provider.get("alias_list") == [("*", "9080"), ("*", "80"), ("*", "9443")]
    assert provider.insync("alias_list")


def test_virtual_host_modify_replaces_aliases(web, runner, settings):
    vhost = VirtualHost(**web.common(vhost="admin_host", alias_list=["*:9060", "admin.example.com:443"]))
    provider = provider_for(vhost, runner, settings)
    provider.exists()
    assert not provider.insync("alias_list")
    provider.set("alias_list", vhost.alias_list)
    provider.flush()
    script = runner.last
    assert "hostId = AdminConfig.getid(scope + '/VirtualHost:' + name + '/')" in script
    assert "AdminConfig.remove(aliasId)" in script
    assert "aliases = [['*', '9060'], ['admin.example.com', '443']]" in script


def test_virtual_host_only_at_cell_scope(web):
    with pytest.raises(ValueError, match="Invalid scope"):
        VirtualHost(**web.common(vhost="default_host", scope="node", node_name="NODE_01"))


def test_host_alias_lookup(web, runner, settings):
    default_port = HostAlias(**web.common(hostname="*", portnumber=80))
    provider = provider_for(default_port, runner, settings)
    assert provider.exists()
    assert provider.get("alias_id") == "HostAlias_2"

    provider = provider_for(HostAlias(**web.common(hostname="*", portnumber=9443)), runner, settings)
    assert provider.exists()
    provider.destroy()
    assert "aliasId = '(cells/CELL_01|virtualhosts.xml#HostAlias_3)'" in runner.last

    missing = HostAlias(**web.common(hostname="www.example.com", portnumber=443, virtual_host="admin_host"))
    assert not provider_for(missing, runner, settings).exists()


def test_host_alias_destroy_needs_config_id(web, runner, settings):
    provider = provider_for(HostAlias(**web.common(hostname="*", portnumber=9999)), runner, settings)
    with pytest.raises(ProviderError, match="configuration id"):
        provider.destroy()


def test_transport_chain_discovery(web, runner, settings):
    chain = TransportChain(
        **_server_scope(
            web,
            tc_name="WCInboundDefaultSecure",
            endpoint_name="WC_defaulthost_secure",
            tcp_inbound_channel={"max_open_connections": 20000},
            http_inbound_channel={"keep_alive": True},
        )
    )
    provider = provider_for(chain, runner, settings)
    assert provider.exists()
    assert provider.get("tcp_inbound_channel")["maxOpenConnections"] == "20000"
    assert [p for p in chain.managed_properties() if not provider.insync(p)] == []


def test_transport_chain_modify_sends_channels(web, runner, settings):
    chain = TransportChain(
        **_server_scope(
            web,
            tc_name="WCInboundDefaultSecure",
            endpoint_name="WC_defaulthost_secure",
            wcc_inbound_channel={"write_buffer_size": 65536},
        )
    )
    provider = provider_for(chain, runner, settings)
    provider.exists()
    assert not provider.insync("wcc_inbound_channel")
    provider.set("wcc_inbound_channel", chain.wcc_inbound_channel)
    provider.flush()
    script = runner.last
    assert "nodeScope = '/Cell:CELL_01/Node:NODE_01/'" in script
    assert "['WebContainerInboundChannel', [['writeBufferSize', '65536']]]" in script
    assert "['TCPInboundChannel', [['endPointName', 'WC_defaulthost_secure']]]" in script


def test_transport_chain_create_and_destroy(web, runner, settings):
    chain = TransportChain(
        **_server_scope(
            web,
            tc_name="NewChain",
            endpoint_name="EP",
            endpoint_details=["apphost", 9444],
            http_inbound_channel={"maximum_persistent_requests": 50},
        )
    )
    provider = provider_for(chain, runner, settings)
    assert not provider.exists()
    provider.create()
    script = runner.last
    assert "template = 'WebContainer-Secure'" in script
    assert "endPointDetails = ['apphost', '9444']" in script
    assert "AdminTask.createChain(tcsId, ['-template', templateId, '-name', chainName" in script
    assert "['HTTPInboundChannel', [['maximumPersistentRequests', '50']]]" in script

    provider.destroy()
    assert "AdminTask.deleteChain(chainId, ['-deleteChannels', 'true'])" in runner.last
    assert "AdminTask.createChain(" not in runner.last


def test_transport_chain_validation(web):
    with pytest.raises(ValueError, match="endpoint_name"):
        TransportChain(**_server_scope(web, tc_name="Chain"))
    with pytest.raises(ValueError, match="insecure HTTP template"):
        TransportChain(
            **_server_scope(
                web,
                tc_name="Chain",
                endpoint_name="EP",
                template="WebContainer",
                ssl_inbound_channel={"authDataAlias": "x"},
            )
        )


def test_classloader_picks_closest_match(web, runner, settings):
    loader = JvmClassloader(**_server_scope(web, jcl_name="app", shared_libs=["commons", "logging"]))
    provider = provider_for(loader, runner, settings)
    assert provider.exists()
    assert provider.get("classloader_id") == "Classloader_2"
    assert provider.insync("shared_libs")


def test_classloader_subset_unless_enforced(web, runner, settings):
    loader = JvmClassloader(**_server_scope(web, jcl_name="app", shared_libs=["commons"]))
    provider = provider_for(loader, runner, settings)
    provider.exists()
    assert provider.insync("shared_libs")

    enforced = JvmClassloader(**_server_scope(web, jcl_name="app", shared_libs=["commons"], enforce_shared_libs=True))
    provider = provider_for(enforced, runner, settings)
    provider.exists()
    assert provider.get("classloader_id") == "Classloader_1"
    assert provider.insync("shared_libs")


def test_classloader_adds_and_removes_libraries(web, runner, settings):
    loader = JvmClassloader(
        **_server_scope(web, jcl_name="app", shared_libs=["logging", "metrics"], enforce_shared_libs=True)
    )
    provider = provider_for(loader, runner, settings)
    provider.exists()
    assert provider.get("classloader_id") == "Classloader_2"
    assert not provider.insync("shared_libs")
    provider.set("shared_libs", loader.shared_libs)
    provider.flush()
    script = runner.last
    assert "classloaderId = '(cells/CELL_01/nodes/NODE_01/servers/AppSrv01|server.xml#Classloader_2)'" in script
    assert "addLibs = ['metrics']" in script
    assert "removeLibs = ['commons']" in script


def test_classloader_absent_when_no_library_matches(web, runner, settings):
    loader = JvmClassloader(**_server_scope(web, jcl_name="app", shared_libs=["other"], mode="PARENT_FIRST"))
    provider = provider_for(loader, runner, settings)
    assert not provider.exists()
    provider.create()
    assert "classloaderId = AdminConfig.create('Classloader', appServer, [['mode', mode]])" in runner.last
    assert "addLibs = ['other']" in runner.last
