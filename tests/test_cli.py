import json

import pytest
from typer.testing import CliRunner

from cli import main
from adapters.was_xml import xor_encode
from cli.main import app
from core.config import get_user_env_file


VIRTUALHOSTS = """<?xml version="1.0" encoding="UTF-8"?>
<xmi:XMI xmi:version="2.0" xmlns:xmi="http://www.omg.org/XMI" xmlns:host="http://www.ibm.com/websphere/appserver/schemas/5.0/host.xmi">
  <host:VirtualHost xmi:id="VirtualHost_1" name="default_host">
    <aliases xmi:id="HostAlias_1" hostname="*" port="9080"/>
  </host:VirtualHost>
</xmi:XMI>
"""

cli_runner = CliRunner()


@pytest.fixture
def workspace(monkeypatch, tmp_path, profile, runner, settings):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.setattr(main, "WsadminRunner", lambda settings: runner)
    profile.write_cell("virtualhosts.xml", VIRTUALHOSTS)
    return profile


def _manifest(tmp_path, profile, *resources):
    lines = [
        "defaults:",
        f"  profile_base: {profile.base}",
        "  dmgr_profile: PROFILE_DMGR_01",
        "  cell: CELL_01",
        "resources:",
        *resources,
    ]
    path = tmp_path / "site.yaml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


IN_SYNC = "  - {kind: virtualhost, vhost: default_host, alias_list: ['*:9080']}"
NEW = "  - {kind: virtualhost, vhost: app_host, alias_list: ['*:8080']}"


def test_plan_runs_nothing(workspace, runner, tmp_path):
    path = _manifest(tmp_path, workspace, IN_SYNC, NEW)
    result = cli_runner.invoke(app, ["plan", str(path)])
    assert result.exit_code == 0, result.output
    assert "would be created" in result.output
    assert "1 unchanged" in result.output
    assert runner.scripts == []


def test_apply_creates_missing(workspace, runner, tmp_path):
    path = _manifest(tmp_path, workspace, IN_SYNC, NEW)
    result = cli_runner.invoke(app, ["apply", str(path)])
    assert result.exit_code == 0, result.output
    assert "1 created" in result.output
    assert len(runner.scripts) == 1


def test_apply_failure_exit_code(workspace, runner, tmp_path):
    runner.fail_with = "WASX7017E: Exception received"
    path = _manifest(tmp_path, workspace, NEW)
    result = cli_runner.invoke(app, ["apply", str(path)])
    assert result.exit_code == 1
    assert "1 failed" in result.output


def test_show_json(workspace, tmp_path):
    path = _manifest(tmp_path, workspace, IN_SYNC, NEW)
    result = cli_runner.invoke(app, ["show", "--json", str(path)])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [(item["resource"], item["present"]) for item in payload] == [
        ("virtualhost[default_host]", True),
        ("virtualhost[app_host]", False),
    ]
    assert payload[0]["state"] == {"alias_list": [["*", "9080"]]}


SECURITY = """<?xml version="1.0" encoding="UTF-8"?>
<security:Security xmi:version="2.0" xmlns:xmi="http://www.omg.org/XMI" xmlns:security="http://www.ibm.com/websphere/appserver/schemas/5.0/security.xmi" xmi:id="Security_1">
  <managementScopes xmi:id="ManagementScope_1" scopeName="(cell):CELL_01" scopeType="cell"/>
  <keyStores xmi:id="KeyStore_1" name="AppKeys" password="PASSWORD" location="${CONFIG_ROOT}/cells/CELL_01/app.p12" type="PKCS12" managementScope="ManagementScope_1" usage="SSLKeys"/>
</security:Security>
""".replace("PASSWORD", xor_encode("WebAS"))


def test_show_masks_passwords(workspace, tmp_path):
    workspace.write_cell("security.xml", SECURITY)
    path = _manifest(
        tmp_path,
        workspace,
        "  - {kind: keystore, ks_name: AppKeys, scope: cell, type: PKCS12, store_password: WebAS,"
        " location: '${CONFIG_ROOT}/cells/CELL_01/app.p12'}",
    )
    result = cli_runner.invoke(app, ["show", "--json", str(path)])
    assert result.exit_code == 0, result.output
    assert "WebAS" not in result.stdout
    assert json.loads(result.stdout)[0]["state"]["store_password"] == "********"

    result = cli_runner.invoke(app, ["show", str(path)])
    assert result.exit_code == 0, result.output
    assert "WebAS" not in result.output


def test_validate(workspace, tmp_path):
    path = _manifest(tmp_path, workspace, IN_SYNC)
    result = cli_runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 0, result.output
    assert "1 resources are valid." in result.output

    bad = _manifest(tmp_path, workspace, "  - {kind: virtualhost, vhost: 'bad name'}")
    result = cli_runner.invoke(app, ["validate", str(bad)])
    assert result.exit_code == 2
    assert "Invalid vhost bad name" in result.output


def test_kinds(workspace):
    result = cli_runner.invoke(app, ["kinds"])
    assert result.exit_code == 0
    for kind in ("queue", "jvm_classloader", "sslconfiggroup", "trustassociation"):
        assert kind in result.output

    result = cli_runner.invoke(app, ["kinds", "hostalias"])
    assert result.exit_code == 0
    assert "portnumber" in result.output

    assert cli_runner.invoke(app, ["kinds", "mailbox"]).exit_code == 2


def test_doctor_run(workspace):
    (workspace.root / "bin").mkdir()
    (workspace.root / "bin" / "wsadmin.sh").write_text("#!/bin/sh\n", encoding="utf-8")
    for name in ("security.xml", "resources.xml"):
        workspace.write_cell(name, "<xmi:XMI xmlns:xmi='http://www.omg.org/XMI'/>")
    args = ["doctor", "run", "--profile-base", str(workspace.base), "--dmgr-profile", "PROFILE_DMGR_01", "--cell", "CELL_01"]
    result = cli_runner.invoke(app, args)
    assert result.exit_code == 0, result.output

    result = cli_runner.invoke(app, ["doctor", "run", "--profile-base", str(workspace.base / "missing")])
    assert result.exit_code == 1


def test_doctor_setup_writes_user_env(workspace):
    answers = "\n".join([str(workspace.base), "PROFILE_DMGR_01", "CELL_01", "wasadmin", "", ""]) + "\n"
    result = cli_runner.invoke(app, ["doctor", "setup"], input=answers)
    assert result.exit_code == 0, result.output
    content = get_user_env_file().read_text(encoding="utf-8")
    assert "WASCONF_DMGR_PROFILE=PROFILE_DMGR_01" in content
    assert "WASCONF_OS_USER=wasadmin" in content
    assert "WASCONF_WSADMIN_USER" not in content
