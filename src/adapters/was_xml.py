"""WAS XML configuration discovery (lxml).

Why lxml:
- WAS documents are XMI with many namespace prefixes; lxml's XPath with
  variables lets providers query them without string-building names into
  expressions.
- The parser is locked down (no network, no entity resolution): these files
  are read as root on production hosts.

Providers never edit these documents, they only read them to learn the
current state before deciding what Jython to run.
"""

from __future__ import annotations

import base64
import logging
import re
from pathlib import Path
from typing import Any, Iterable

from lxml import etree

from core.domain.errors import ConfigFileError


logger = logging.getLogger(__name__)

XMI_NS = "http://www.omg.org/XMI"
XMI_ID = f"{{{XMI_NS}}}id"
XMI_TYPE = f"{{{XMI_NS}}}type"


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        no_network=True,
        resolve_entities=False,
        remove_blank_text=True,
        huge_tree=True,
    )


def sanitize_lines(text: str, ignored_names: Iterable[str]) -> str:
    """Drop `resourceProperties` entries whose names end in an ignored extension.

    Some WAS resource properties (e.g. `foo.xml`) carry inline documents as
    values and make `resources.xml` unparseable; they are never managed here.
    """

    extensions = [re.escape(ext) for ext in ignored_names if ext]
    if not extensions:
        return text
    pattern = re.compile(r'<resourceProperties.*name="\w+\.(' + "|".join(extensions) + r')"')
    lines = text.splitlines(keepends=True)
    kept = [line for line in lines if not pattern.search(line)]
    dropped = len(lines) - len(kept)
    if dropped:
        logger.debug("Sanitised %s resourceProperties line(s)", dropped)
    return "".join(kept)


class ConfigDocument:
    """A parsed WAS configuration file with namespace-aware XPath helpers."""

    def __init__(self, root: etree._Element, path: Path) -> None:
        self.root = root
        self.path = path
        self.namespaces = {k: v for k, v in (root.nsmap or {}).items() if k}
        self.namespaces.setdefault("xmi", XMI_NS)

    def xpath(self, expr: str, node: etree._Element | None = None, **variables: Any) -> list[Any]:
        context = self.root if node is None else node
        return context.xpath(expr, namespaces=self.namespaces, **variables)

    def first(self, expr: str, node: etree._Element | None = None, **variables: Any) -> Any:
        found = self.xpath(expr, node, **variables)
        return found[0] if found else None

    def text(self, expr: str, node: etree._Element | None = None, **variables: Any) -> str | None:
        found = self.first(expr, node, **variables)
        if found is None:
            return None
        if isinstance(found, str):
            return str(found)
        return found.text

    def by_id(self, xmi_id: str) -> etree._Element | None:
        return self.first("//*[@xmi:id=$id]", id=xmi_id)

    def attributes(self, element: etree._Element | None) -> dict[str, str]:
        return attributes(element, self.namespaces)


def attributes(element: etree._Element | None, namespaces: dict[str, str] | None = None) -> dict[str, str]:
    """Attribute dict keyed by local name; namespaced ones keep their prefix (`xmi:id`)."""

    if element is None:
        return {}
    reverse = {uri: prefix for prefix, uri in (namespaces or {}).items()}
    reverse.setdefault(XMI_NS, "xmi")
    data: dict[str, str] = {}
    for key, value in element.attrib.items():
        qname = etree.QName(key)
        if qname.namespace:
            prefix = reverse.get(qname.namespace, qname.namespace)
            data[f"{prefix}:{qname.localname}"] = value
        else:
            data[qname.localname] = value
    return data


def resource_properties(doc: ConfigDocument, element: etree._Element | None) -> dict[str, str]:
    """name -> value for `propertySet/resourceProperties` (or direct `resourceProperties`)."""

    if element is None:
        return {}
    props: dict[str, str] = {}
    for prop in doc.xpath("propertySet/resourceProperties | resourceProperties", element):
        name = prop.get("name")
        if name:
            props[name] = prop.get("value", "")
    return props


def load_config(path: Path, *, sanitize: bool = False, ignored_names: Iterable[str] = ()) -> ConfigDocument | None:
    """Parse `path`; None when the file does not exist yet."""

    if not path.exists():
        logger.debug("%s does not exist", path)
        return None
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigFileError(f"Cannot read {path}: {exc}") from exc
    if sanitize:
        raw = sanitize_lines(raw, ignored_names)
    try:
        root = etree.fromstring(raw.encode("utf-8"), parser=_parser())
    except etree.XMLSyntaxError as exc:
        raise ConfigFileError(f"Cannot parse {path}: {exc}") from exc
    return ConfigDocument(root, path)


def xor_decode(value: str | None) -> str | None:
    """Decode a WAS `{xor}` password; other values are returned unchanged."""

    if value is None or not value.startswith("{xor}"):
        return value
    raw = base64.b64decode(value[len("{xor}"):])
    return bytes(b ^ ord("_") for b in raw).decode("utf-8", errors="replace")


def xor_encode(value: str) -> str:
    raw = bytes(b ^ ord("_") for b in value.encode("utf-8"))
    return "{xor}" + base64.b64encode(raw).decode("ascii")
