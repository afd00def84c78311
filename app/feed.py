# app/feed.py
"""XML listing feed parser.

The feed is decoded into a tree of `RawListing` nodes. Tag names lose their
namespace prefix (``ns:Title`` and ``Title`` are the same field), and every
leaf is exposed as one of three shapes so callers never probe raw nodes:

* `Scalar` - plain text content
* `Attributed` - text content plus the element's attributes, e.g.
  ``<ListPrice currency="BRL">450000</ListPrice>``
* `ABSENT` - the field is not in the record

Expected layout::

    <ListingDataFeed>
      <Listings>
        <Listing>...</Listing>
      </Listings>
    </ListingDataFeed>
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from lxml import etree
from .errors import ParseError

ROOT_TAG = "ListingDataFeed"
CONTAINER_TAG = "Listings"
LISTING_TAG = "Listing"


@dataclass(frozen=True)
class Scalar:
    value: str


@dataclass(frozen=True)
class Attributed:
    text: Optional[str]
    attributes: Dict[str, str] = field(default_factory=dict)


class _Absent:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "ABSENT"

    def __bool__(self):
        return False


ABSENT = _Absent()

FieldValue = Union[Scalar, Attributed, _Absent]


def value_text(value: FieldValue) -> Optional[str]:
    """Text payload of a field, or None when there is nothing usable."""
    if isinstance(value, Scalar):
        return value.value
    if isinstance(value, Attributed):
        return value.text
    return None


class RawListing:
    """Read-only view over one element of the feed.

    Children are keyed by local tag name. A tag that repeats keeps every
    occurrence; the accessors below return the first one.
    """

    def __init__(self, children: Dict[str, list], attributes: Optional[Dict[str, str]] = None,
                 text: Optional[str] = None):
        self._children = children
        self.attributes = attributes or {}
        # all text below this node, whitespace collapsed
        self.text_content = text

    def __repr__(self):
        return f"RawListing({sorted(self._children)})"

    def __contains__(self, name):
        return name in self._children

    def _first(self, name):
        nodes = self._children.get(name)
        return nodes[0] if nodes else None

    def field(self, name: str) -> FieldValue:
        node = self._first(name)
        if node is None:
            return ABSENT
        if isinstance(node, RawListing):
            # a block where a value was expected: read its text content
            if node.attributes:
                return Attributed(node.text_content, dict(node.attributes))
            return Scalar(node.text_content or "")
        return node

    def block(self, name: str) -> "RawListing":
        node = self._first(name)
        if isinstance(node, RawListing):
            return node
        return RawListing({})

    def blocks(self, name: str) -> List["RawListing"]:
        out = []
        for node in self._children.get(name, []):
            if isinstance(node, RawListing):
                out.append(node)
            else:
                # empty element, e.g. <Listing/>
                attrs = node.attributes if isinstance(node, Attributed) else {}
                out.append(RawListing({}, attrs))
        return out

    def text(self, name: str) -> Optional[str]:
        return value_text(self.field(name))


def _local(name) -> str:
    # '{uri}Title' -> 'Title', 'ns:Title' -> 'Title'
    if name.startswith("{"):
        name = name.split("}", 1)[1]
    return name.rsplit(":", 1)[-1]


def _convert(element):
    attributes = {_local(k): v for k, v in element.attrib.items()}
    children = [c for c in element if isinstance(c.tag, str)]
    if not children:
        text = element.text
        if text is not None:
            text = text.strip()
        if attributes:
            return Attributed(text or None, attributes)
        return Scalar(text or "")
    grouped: Dict[str, list] = {}
    for child in children:
        grouped.setdefault(_local(child.tag), []).append(_convert(child))
    # mixed content, e.g. <Title>Casa <b>nova</b></Title>
    text = " ".join("".join(element.itertext()).split())
    return RawListing(grouped, attributes, text or None)


def _parser():
    # recover keeps undeclared prefixes such as <ns:Title> instead of failing;
    # real syntax errors are still read back from the error log
    return etree.XMLParser(
        recover=True,
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
    )


def _syntax_errors(parser):
    return [
        e for e in parser.error_log
        if e.level >= etree.ErrorLevels.ERROR and e.domain != etree.ErrorDomains.NAMESPACE
    ]


def parse_feed(xml: Union[bytes, str]) -> List[RawListing]:
    """Decode a feed document into its listing records.

    Raises `ParseError` when the document is not well-formed or when the
    `ListingDataFeed/Listings` container is missing. A container without
    listings is a valid, empty feed. Namespace prefixes need not be
    declared.
    """
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    if not xml or not xml.strip():
        raise ParseError("empty document")
    parser = _parser()
    try:
        root = etree.fromstring(xml, parser=parser)
    except etree.XMLSyntaxError as e:
        raise ParseError(f"malformed XML: {e}") from e
    errors = _syntax_errors(parser)
    if errors:
        first = errors[0]
        raise ParseError(f"malformed XML: {first.message.strip()}, line {first.line}, column {first.column}")
    if root is None:
        raise ParseError("malformed XML: no root element")

    if _local(root.tag) != ROOT_TAG:
        raise ParseError(f"unexpected root element <{_local(root.tag)}>, expected <{ROOT_TAG}>")
    tree = _convert(root)
    if not isinstance(tree, RawListing) or CONTAINER_TAG not in tree:
        raise ParseError(f"<{ROOT_TAG}> has no <{CONTAINER_TAG}> container")

    container = tree.block(CONTAINER_TAG)
    return container.blocks(LISTING_TAG)
