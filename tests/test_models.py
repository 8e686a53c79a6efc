import pytest
from pydantic import ValidationError

from core.domain.models import Ensure
from core.domain.resources import RESOURCE_TYPES, resource_type
from core.domain.resources.jdbc import JdbcDatasource, ORACLE_HELPER
from core.domain.resources.jms import ActivationSpec, CfType, ConnectionFactory, Queue, QueueConnectionFactory
from core.domain.resources.security import AuthAlias, GlobalSecurity, Interceptor, JaasLogin
from core.domain.resources.ssl import SslConfig
from core.domain.resources.web import HostAlias, TransportChain, VirtualHost
from core.domain.scope import ScopeKind


BASE = {"profile_base": "/opt/IBM/WebSphere/AppServer/profiles", "dmgr_profile": "PROFILE_DMGR_01", "cell": "CELL_01"}


def test_registry_covers_every_kind():
    assert set(RESOURCE_TYPES) == {
        "queue",
        "topic",
        "cf",
        "qcf",
        "activationspec",
        "jdbc_datasource",
        "user",
        "group",
        "authalias",
        "jaaslogin",
        "trustassociation",
        "interceptor",
        "globalsecurity",
        "keystore",
        "personalcert",
        "signercert",
        "sslconfig",
        "sslconfiggroup",
        "virtualhost",
        "hostalias",
        "transportchain",
        "jvm_classloader",
    }
    with pytest.raises(KeyError):
        resource_type("datasource")


def test_queue_from_title():
    queue = Queue(
        title="/opt/IBM/WebSphere/AppServer/profiles:PROFILE_DMGR_01:cluster:CELL_01:CL_01:PAYMENTS",
        queue_name="PAYMENTS.IN",
        q_data={"target_client": "MQ"},
    )
    assert queue.q_name == "PAYMENTS"
    assert queue.scope is ScopeKind.CLUSTER
    assert queue.cluster == "CL_01"
    assert queue.q_data == {"targetClient": "MQ"}
    assert queue.identity() == "queue[PAYMENTS]"
    assert str(queue.config_path).endswith("config/cells/CELL_01/clusters/CL_01/resources.xml")


def test_profile_defaults_to_dmgr_profile_and_back():
    queue = Queue(**{**BASE, "dmgr_profile": None}, profile="P1", q_name="Q", queue_name="Q", scope="cell")
    assert queue.dmgr_profile == "P1"
    queue = Queue(**BASE, q_name="Q", queue_name="Q", scope="cell")
    assert queue.profile == "PROFILE_DMGR_01"


@pytest.mark.parametrize(
    ("extra", "message"),
    [
        ({"scope": "server", "node_name": "N1"}, "server is required"),
        ({"scope": "node"}, "node_name is required"),
        ({"scope": "cluster"}, "cluster is required"),
        ({"scope": "galaxy"}, "scope"),
        ({"scope": "cell", "q_name": "bad name"}, "Invalid q_name"),
        ({"scope": "cell", "profile_base": "relative/path"}, "Invalid profile_base"),
        ({"scope": "cell", "queue_name": ""}, "queue_name property must not be empty"),
    ],
)
def test_scope_and_name_validation(extra, message):
    data = {**BASE, "q_name": "Q", "queue_name": "Q", **extra}
    with pytest.raises(ValidationError, match=message):
        Queue(**data)


def test_absent_queue_does_not_need_queue_name():
    queue = Queue(**BASE, q_name="Q", scope="cell", ensure="absent")
    assert queue.ensure is Ensure.ABSENT


def test_qcf_rejects_topic_keys():
    with pytest.raises(ValidationError, match="incompatible with type QCF"):
        ConnectionFactory(**BASE, scope="cell", cf_name="CF", cf_type="QCF", qmgr_data={"broker_ctrl_queue": "X"})
    with pytest.raises(ValidationError, match="incompatible with type TCF"):
        ConnectionFactory(**BASE, scope="cell", cf_name="CF", cf_type="TCF", qmgr_data={"model_queue": "X"})


def test_qcf_kind_is_pinned_to_qcf():
    qcf = QueueConnectionFactory(**BASE, scope="cell", qcf_name="QCF1", qmgr_data={"qmgr_name": "QM1"})
    assert qcf.cf_name == "QCF1"
    assert qcf.cf_type is CfType.QCF
    with pytest.raises(ValidationError):
        QueueConnectionFactory(**BASE, scope="cell", cf_name="QCF1", cf_type="TCF", qmgr_data={"qmgr_name": "QM1"})


def test_activation_spec_ccdt_conflict():
    with pytest.raises(ValidationError, match="incompatible"):
        ActivationSpec(
            **BASE,
            scope="cell",
            as_name="AS1",
            destination_jndi="jms/q",
            qmgr_data={"ccdt_url": "file:///x", "qmgr_name": "QM1"},
        )


def test_jdbc_helper_class_and_properties():
    with pytest.raises(ValidationError, match="Unsupported Helper Class"):
        JdbcDatasource(**BASE, scope="cell", ds_name="DS", jdbc_provider="P", jndi_name="jdbc/ds", data_store_helper_class="x.Y")
    ds = JdbcDatasource(
        **BASE,
        scope="cell",
        ds_name="DS",
        jdbc_provider="Oracle",
        jndi_name="jdbc/ds",
        data_store_helper_class=ORACLE_HELPER,
        url="jdbc:oracle:thin:@db:1521/APP",
    )
    assert ds.resource_properties() == [("URL", "java.lang.String", "jdbc:oracle:thin:@db:1521/APP")]


def test_authalias_accepts_alias_key():
    alias = AuthAlias(**BASE, alias="DB_USER", userid="app")
    assert alias.aliasid == "DB_USER"
    assert alias.masked_dump()["password"] is None
    alias = AuthAlias(**BASE, alias="DB_USER", userid="app", password="secret")
    assert alias.masked_dump()["password"] == "********"


def test_jaas_modules_are_ordered_by_ordinal():
    login = JaasLogin(
        **BASE,
        jaas_login="WSLogin",
        login_modules={
            "com.example.Second": {"ordinal": "2"},
            "com.example.First": {"ordinal": 1, "authentication_strategy": "SUFFICIENT"},
        },
    )
    assert login.ordered_modules() == ["com.example.First", "com.example.Second"]
    assert login.login_modules["com.example.Second"]["authentication_strategy"] == "REQUIRED"
    assert login.login_modules["com.example.Second"]["ordinal"] == 2


def test_interceptor_and_global_security():
    tai = Interceptor(**BASE, interceptor_classname="com.example.TAI", properties={"host": "sso"})
    assert tai.is_global
    assert tai.trust_properties == {"host": "sso"}
    domain = Interceptor(**BASE, interceptor_classname="com.example.TAI", secd_name="APPS")
    assert "securitydomains/APPS/domain-security.xml" in str(domain.config_path)
    with pytest.raises(ValidationError, match="must be 'global'"):
        GlobalSecurity(**BASE, secd_name="APPS")


def test_ssl_config_store_scopes_default_to_scope():
    conf = SslConfig(**BASE, scope="cell", conf_alias="AppSSL", key_store_name="K", trust_store_name="T")
    assert conf.key_store_scope is ScopeKind.CELL
    assert conf.trust_store_scope is ScopeKind.CELL
    assert str(conf.config_path).endswith("cells/CELL_01/security.xml")


def test_web_models():
    vhost = VirtualHost(**BASE, vhost="app_host", alias_list=[["*", 9080], "localhost", {"hostname": "a"}])
    assert vhost.alias_list == [("*", "9080"), ("localhost", "80"), ("a", "80")]
    alias = HostAlias(**BASE, title="default_host:*:9443")
    assert alias.portnumber == 9443
    assert alias.name == "*:9443"
    with pytest.raises(ValidationError, match="insecure HTTP template"):
        TransportChain(
            **BASE,
            scope="server",
            node_name="N",
            server="S",
            tc_name="Chain",
            endpoint_name="EP",
            template="WebContainer",
            ssl_inbound_channel={"a": "b"},
        )
    with pytest.raises(ValidationError, match="end_point_name"):
        TransportChain(
            **BASE,
            scope="server",
            node_name="N",
            server="S",
            tc_name="Chain",
            endpoint_name="EP",
            tcp_inbound_channel={"end_point_name": "x"},
        )
