"""WebSphere administrative scopes.

A configuration object lives at cell, cluster, node or server level. The
same location is written four different ways depending on who consumes it:

- `query`: containment path for `AdminConfig.getid` (`/Cell:C/Node:N`)
- `mod`: repository path used in config ids (`cells/C/nodes/N`)
- `xml`: management scope name stored in security.xml (`(cell):C:(node):N`)
- `file`: the XML document on disk holding the object
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ScopeKind(str, Enum):
    CELL = "cell"
    CLUSTER = "cluster"
    NODE = "node"
    SERVER = "server"


@dataclass(frozen=True)
class ScopeRef:
    """A resolved scope: kind plus the names needed to address it."""

    kind: ScopeKind
    cell: str
    cluster: str | None = None
    node: str | None = None
    server: str | None = None

    @property
    def query(self) -> str:
        if self.kind is ScopeKind.CELL:
            return f"/Cell:{self.cell}"
        if self.kind is ScopeKind.CLUSTER:
            return f"/Cell:{self.cell}/ServerCluster:{self.cluster}"
        if self.kind is ScopeKind.NODE:
            return f"/Cell:{self.cell}/Node:{self.node}"
        return f"/Cell:{self.cell}/Node:{self.node}/Server:{self.server}"

    @property
    def mod(self) -> str:
        if self.kind is ScopeKind.CELL:
            return f"cells/{self.cell}"
        if self.kind is ScopeKind.CLUSTER:
            return f"cells/{self.cell}/clusters/{self.cluster}"
        if self.kind is ScopeKind.NODE:
            return f"cells/{self.cell}/nodes/{self.node}"
        return f"cells/{self.cell}/nodes/{self.node}/servers/{self.server}"

    @property
    def xml(self) -> str:
        if self.kind is ScopeKind.CELL:
            return f"(cell):{self.cell}"
        if self.kind is ScopeKind.CLUSTER:
            return f"(cell):{self.cell}:(cluster):{self.cluster}"
        if self.kind is ScopeKind.NODE:
            return f"(cell):{self.cell}:(node):{self.node}"
        return f"(cell):{self.cell}:(node):{self.node}:(server):{self.server}"

    def file(self, profile_root: Path, filename: str) -> Path:
        """Path of `filename` inside this scope's config directory."""

        return profile_root / "config" / self.mod / filename

    def with_kind(self, kind: ScopeKind | str) -> "ScopeRef":
        """Same names, different level (e.g. a key store one level up)."""

        return ScopeRef(
            kind=ScopeKind(kind),
            cell=self.cell,
            cluster=self.cluster,
            node=self.node,
            server=self.server,
        )
