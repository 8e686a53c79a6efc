from pathlib import Path

import pytest

from core.domain.scope import ScopeKind, ScopeRef
from core.domain.titles import cell_patterns, expand_title, hostalias_patterns, parse_title, scoped_patterns


def test_scoped_title_most_specific_pattern_wins():
    patterns = scoped_patterns("q_name")
    values = parse_title("/opt/profiles:DMGR01:cluster:CELL_01:CL_01:MyQueue", patterns)
    assert values == {
        "profile_base": "/opt/profiles",
        "dmgr_profile": "DMGR01",
        "scope": "cluster",
        "cell": "CELL_01",
        "cluster": "CL_01",
        "q_name": "MyQueue",
    }


def test_scoped_title_short_forms():
    patterns = scoped_patterns("q_name")
    assert parse_title("MyQueue", patterns) == {"q_name": "MyQueue"}
    assert parse_title("/opt/profiles:MyQueue", patterns) == {"profile_base": "/opt/profiles", "q_name": "MyQueue"}


def test_server_title():
    values = parse_title("/p:D:server:C:N1:S1:chain", scoped_patterns("tc_name", scopes=("server",)))
    assert values["node_name"] == "N1"
    assert values["server"] == "S1"
    assert values["tc_name"] == "chain"


def test_scope_not_allowed_by_kind_does_not_match():
    with pytest.raises(ValueError):
        parse_title("/p:D:node:C:N1:vhost", scoped_patterns("vhost", scopes=("cell",)))


def test_cell_patterns_and_hostalias():
    assert parse_title("/p:D:C:jdoe", cell_patterns("userid"))["cell"] == "C"
    assert parse_title("default_host:*:9443", hostalias_patterns()) == {
        "virtual_host": "default_host",
        "hostname": "*",
        "portnumber": "9443",
    }


def test_expand_title_keeps_explicit_values():
    data = {"title": "/p:D:cell:C:Q1", "q_name": "Explicit"}
    expanded = expand_title(data, scoped_patterns("q_name"))
    assert expanded["q_name"] == "Explicit"
    assert expanded["cell"] == "C"
    assert expanded["scope"] == "cell"


@pytest.mark.parametrize(
    ("kind", "query", "mod", "xml"),
    [
        (ScopeKind.CELL, "/Cell:C", "cells/C", "(cell):C"),
        (ScopeKind.CLUSTER, "/Cell:C/ServerCluster:CL", "cells/C/clusters/CL", "(cell):C:(cluster):CL"),
        (ScopeKind.NODE, "/Cell:C/Node:N", "cells/C/nodes/N", "(cell):C:(node):N"),
        (ScopeKind.SERVER, "/Cell:C/Node:N/Server:S", "cells/C/nodes/N/servers/S", "(cell):C:(node):N:(server):S"),
    ],
)
def test_scope_forms(kind, query, mod, xml):
    ref = ScopeRef(kind=kind, cell="C", cluster="CL", node="N", server="S")
    assert ref.query == query
    assert ref.mod == mod
    assert ref.xml == xml
    assert ref.file(Path("/base"), "resources.xml") == Path("/base/config") / mod / "resources.xml"


def test_scope_with_kind():
    ref = ScopeRef(kind=ScopeKind.SERVER, cell="C", node="N", server="S")
    assert ref.with_kind("node").query == "/Cell:C/Node:N"
