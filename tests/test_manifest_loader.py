import json
from pathlib import Path

import pytest

from core.config import AppSettings
from core.domain.errors import ManifestError, ResourceValidationError
from core.domain.resources.jms import Queue
from core.domain.resources.web import HostAlias
from core.manifest_loader import build_resource, load_manifest, read_manifest, settings_defaults


MANIFEST = """
defaults:
  profile_base: /opt/IBM/WebSphere/AppServer/profiles
  dmgr_profile: PROFILE_DMGR_01
  cell: CELL_01
resources:
  - kind: queue
    q_name: PAYMENTS.IN
    scope: cluster
    cluster: CL_APP
    queue_name: PAYMENTS.IN
    q_data:
      target_client: MQ
  - kind: hostalias
    hostname: "*"
    portnumber: 9443
"""


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_load_yaml_manifest(tmp_path, settings):
    resources = load_manifest(_write(tmp_path, "site.yaml", MANIFEST), settings)
    queue, alias = resources
    assert isinstance(queue, Queue)
    assert queue.cell == "CELL_01"
    assert queue.profile == "PROFILE_DMGR_01"
    assert queue.q_data == {"targetClient": "MQ"}
    assert isinstance(alias, HostAlias)
    assert alias.identity() == "hostalias[*:9443]"


def test_json_and_bare_list(tmp_path):
    entries = [
        {
            "kind": "authalias",
            "alias": "DB_USER",
            "userid": "db",
            "password": "secret",
            "profile_base": "/opt/profiles",
            "dmgr_profile": "DMGR",
            "cell": "C1",
        }
    ]
    data = read_manifest(_write(tmp_path, "site.json", json.dumps(entries)))
    assert data == {"defaults": {}, "resources": entries}
    assert read_manifest(_write(tmp_path, "empty.yaml", "")) == {"defaults": {}, "resources": []}


def test_precedence(settings):
    settings = AppSettings(_env_file=None, profile_base="/srv/was", dmgr_profile="SETTINGS_DMGR", cell="SETTINGS_CELL")
    defaults = {"cell": "DEFAULT_CELL"}
    entry = {"kind": "queue", "q_name": "Q1", "queue_name": "Q1", "scope": "cell"}

    queue = build_resource(entry, defaults=defaults, settings=settings)
    assert queue.cell == "DEFAULT_CELL"
    assert str(queue.profile_base) == "/srv/was"
    assert queue.dmgr_profile == "SETTINGS_DMGR"

    queue = build_resource({**entry, "cell": "OWN_CELL"}, defaults=defaults, settings=settings)
    assert queue.cell == "OWN_CELL"

    titled = build_resource(
        {"kind": "queue", "title": "/opt/profiles:DMGR_T:cluster:TITLE_CELL:CL_01:Q2", "queue_name": "Q2"},
        defaults=defaults,
        settings=settings,
    )
    assert (titled.cell, titled.cluster, titled.dmgr_profile) == ("TITLE_CELL", "CL_01", "DMGR_T")
    assert str(titled.profile_base) == "/opt/profiles"


def test_explicit_profile_beats_default_dmgr_profile():
    resource = build_resource(
        {"kind": "queue", "q_name": "Q", "queue_name": "Q", "scope": "cell", "profile": "OWN"},
        defaults={"profile_base": "/opt/profiles", "dmgr_profile": "DMGR", "cell": "C"},
    )
    assert resource.profile == "OWN"
    assert resource.dmgr_profile == "OWN"


def test_settings_defaults_maps_os_user(settings):
    values = settings_defaults(settings)
    assert values["user"] == "root"
    assert "cell" not in values


@pytest.mark.parametrize(
    ("entry", "message"),
    [
        ({"q_name": "Q"}, "without `kind`"),
        ({"kind": "mailbox", "name": "x"}, "Unknown kind 'mailbox'"),
        ("queue", "must be mappings"),
    ],
)
def test_bad_entries(entry, message):
    with pytest.raises(ManifestError, match=message):
        build_resource(entry)


def test_validation_errors_name_the_resource():
    with pytest.raises(ResourceValidationError) as info:
        build_resource(
            {"kind": "queue", "q_name": "Q1", "scope": "cluster"},
            defaults={"profile_base": "/opt/profiles", "dmgr_profile": "DMGR", "cell": "C"},
        )
    assert str(info.value) == "queue[Q1]: cluster is required when scope is cluster"
    assert info.value.kind == "queue"


DEFAULTS = {"profile_base": "/opt/profiles", "dmgr_profile": "DMGR", "cell": "C"}


def test_validation_error_label_uses_field_alias():
    with pytest.raises(ResourceValidationError) as info:
        build_resource({"kind": "authalias", "alias": "DB_USER", "manage_password": "often"}, defaults=DEFAULTS)
    assert str(info.value).startswith("authalias[DB_USER]: ")


@pytest.mark.parametrize("ordinal", ["first", 1.5, True])
def test_jaas_login_ordinal_must_be_an_integer(ordinal):
    entry = {
        "kind": "jaaslogin",
        "jaas_login": "AppLogin",
        "login_modules": {"com.example.First": {"ordinal": ordinal}},
    }
    with pytest.raises(ResourceValidationError, match="ordinal of com.example.First must be an integer"):
        build_resource(entry, defaults=DEFAULTS)


def test_unparseable_manifest(tmp_path):
    with pytest.raises(ManifestError, match="Cannot parse"):
        read_manifest(_write(tmp_path, "broken.yaml", "resources: [unclosed"))
    with pytest.raises(ManifestError, match="must be a list"):
        read_manifest(_write(tmp_path, "shape.yaml", "resources: {kind: queue}"))
