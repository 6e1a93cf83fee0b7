"""RSS 2.0 and Atom parsing into a single raw entry shape.

Elements are matched by local name, so namespaced and plain Atom documents
are read the same way. Links are the exception: an RSS item only takes its
un-namespaced ``<link>``, never an ``atom:link`` extension.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import UTC, datetime

from cosme_feed.exceptions import ParseError
from cosme_feed.models import LinkField, LinkRef, LinkRefs, LinkText, RawEntry

_DESCRIPTION_FIELDS = ("description", "summary", "content")
_DATE_FIELDS = ("pubDate", "published", "updated")
_ALTERNATE_REL = "alternate"
_ATOM_LINK = "{http://www.w3.org/2005/Atom}link"
_RSS_LINK_TAGS = frozenset({"link"})
_ATOM_LINK_TAGS = frozenset({"link", _ATOM_LINK})


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(node: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in node if _local(child.tag) == name]


def _child(node: ET.Element, name: str) -> ET.Element | None:
    matches = _children(node, name)
    return matches[0] if matches else None


def _text(node: ET.Element | None) -> str:
    """Return the full text content of ``node``, unwrapping nested markup."""
    if node is None:
        return ""
    return "".join(node.itertext())


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def parse_feed(xml_text: str) -> list[RawEntry]:
    """Parse an RSS or Atom document into raw entries.

    RSS ``channel/item`` is consulted first; otherwise Atom ``feed/entry``.
    A document with a single entry yields a one-element list.

    Args:
        xml_text: The feed document.

    Returns:
        Raw entries in document order.

    Raises:
        ParseError: If the XML is malformed or is neither RSS nor Atom.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise ParseError(f"malformed feed document: {exc}") from exc

    parsed_at = datetime.now(tz=UTC).isoformat()

    channel = root if _local(root.tag) == "channel" else _child(root, "channel")
    if channel is not None:
        items = _children(channel, "item")
        link_tags = _RSS_LINK_TAGS
    elif _local(root.tag) == "feed":
        items = _children(root, "entry")
        link_tags = _ATOM_LINK_TAGS
    else:
        msg = f"unrecognized feed document root: <{_local(root.tag)}>"
        raise ParseError(msg)

    return [_entry_from_node(item, parsed_at, link_tags) for item in items]


def _entry_from_node(
    node: ET.Element, parsed_at: str, link_tags: frozenset[str]
) -> RawEntry:
    enclosure = _child(node, "enclosure")
    enclosure_url = enclosure.get("url", "") if enclosure is not None else ""
    return RawEntry(
        title=_text(_child(node, "title")),
        link=_link_field(node, link_tags),
        enclosure_url=enclosure_url.strip(),
        description=_first_text(node, _DESCRIPTION_FIELDS),
        published=_first_text(node, _DATE_FIELDS).strip() or parsed_at,
    )


def _first_text(node: ET.Element, names: tuple[str, ...]) -> str:
    for name in names:
        value = _text(_child(node, name))
        if value.strip():
            return value
    return ""


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


def _link_field(node: ET.Element, link_tags: frozenset[str]) -> LinkField:
    """Classify the ``<link>`` elements of an entry into a link variant.

    Only children whose full tag is in ``link_tags`` count, which keeps
    ``atom:link`` extensions out of RSS items.
    """
    links = [child for child in node if child.tag in link_tags]
    if not links:
        return None
    if len(links) == 1:
        link = links[0]
        if "href" in link.attrib:
            return LinkRef(href=link.get("href", ""), rel=link.get("rel", ""))
        return LinkText(url=_text(link).strip())
    return LinkRefs(
        refs=tuple(
            LinkRef(href=link.get("href", ""), rel=link.get("rel", ""))
            for link in links
        )
    )


def extract_link(entry: RawEntry) -> str:
    """Resolve the usable URL of an entry.

    Precedence:
        1. a plain link string
        2. a single link object's ``href``
        3. among several link objects, the ``rel="alternate"`` one, else the
           first carrying an ``href``
        4. the enclosure URL

    Returns:
        The URL, or ``""`` when the entry has no usable link.
    """
    link = entry.link
    resolved = ""
    if isinstance(link, LinkText):
        resolved = link.url
    elif isinstance(link, LinkRef):
        resolved = link.href
    elif isinstance(link, LinkRefs):
        alternate = next(
            (ref for ref in link.refs if ref.rel == _ALTERNATE_REL and ref.href),
            None,
        )
        first = alternate or next((ref for ref in link.refs if ref.href), None)
        if first is not None:
            resolved = first.href
    return resolved or entry.enclosure_url
