"""
DOM query adapter used by the sourcing engine.

DomScope is the capability interface the engine depends on: CSS filtering,
counting, single-node reads on the first node of the scope, serialization,
ordered child-node enumeration and per-node mapping. SoupScope implements it
on top of BeautifulSoup with the html5lib tree builder, so fragments get the
same HTML5 parsing rules a browser would apply.

Design principle: NEVER FAIL on bad input. Malformed markup is repaired by the
HTML5 parser; an invalid selector is logged and matches nothing.
"""

import copy
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional

import soupsieve
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

from .exceptions import EmptyScopeError
from .logger import get_module_logger

logger = get_module_logger("dom")

# Minimal document context: the doctype forces HTML5 parsing rules, and the
# fragment is re-entered at <body> before any selector runs.
DOCUMENT_TEMPLATE = "<!doctype html><html><body>{}</body></html>"


class FragmentFormatter(HTMLFormatter):
    """Writes attributes in source order instead of sorting them."""

    def attributes(self, tag):
        if not tag.attrs:
            return []
        return list(tag.attrs.items())


# Serialization used for every html()/outer_html() call: escape only &, < and >
# (non-ASCII text is kept as-is) and write void elements as <br>, not <br/>.
SERIALIZER = FragmentFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

# ASCII whitespace only: U+00A0 (&nbsp;) is content, not spacing
HTML_WHITESPACE = " \t\n\r\f"
WHITESPACE_RUN = re.compile(r"[ \t\n\r\f]+")


class NodeKind(Enum):
    """Kinds of direct child node reported by DomScope.child_nodes()."""
    ELEMENT = "element"
    TEXT = "text"
    OTHER = "other"  # comments, CDATA, processing instructions, doctypes


class ChildNode(NamedTuple):
    """A direct child node: elements carry their outer HTML, text nodes their raw text."""
    kind: NodeKind
    value: str


class DomScope(ABC):
    """
    An ordered set of DOM nodes under consideration for one extraction step.

    Single-node reads (attr, html, outer_html, text, node_name, children,
    child_nodes) look at the first node and raise EmptyScopeError on an
    empty scope; callers check count() first.
    """

    @abstractmethod
    def filter(self, selector: str) -> "DomScope":
        """
        Nodes matching a CSS selector: each node itself or its descendants, in document order.

        Each node is the root for matching, so combinators never reach its ancestors.
        """
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def attr(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def html(self) -> str:
        """Inner HTML of the first node."""
        pass

    @abstractmethod
    def outer_html(self) -> str:
        pass

    @abstractmethod
    def text(self) -> str:
        """Whitespace-normalized text of the first node and its descendants."""
        pass

    @abstractmethod
    def node_name(self) -> str:
        pass

    @abstractmethod
    def children(self) -> "DomScope":
        """Element children of the first node."""
        pass

    @abstractmethod
    def child_nodes(self) -> list[ChildNode]:
        """All direct child nodes of the first node, text nodes included."""
        pass

    @abstractmethod
    def each(self, fn: Callable[["DomScope"], Any]) -> list:
        """Apply fn to a single-node scope for every node, collecting results in order."""
        pass

    def __len__(self) -> int:
        return self.count()


class SoupScope(DomScope):
    """DomScope over a list of BeautifulSoup tags."""

    def __init__(self, nodes: list[Tag]):
        self.nodes = list(nodes)

    @classmethod
    def from_fragment(cls, markup: str) -> "SoupScope":
        """
        Parse an HTML fragment and return a scope positioned on its <body>.

        multi_valued_attributes=None keeps attributes such as class as the
        plain strings found in the markup instead of splitting them into lists.
        """
        soup = BeautifulSoup(
            DOCUMENT_TEMPLATE.format(markup or ""),
            "html5lib",
            multi_valued_attributes=None,
        )
        body = soup.body
        return cls([body] if body is not None else [])

    def _first(self) -> Tag:
        if not self.nodes:
            raise EmptyScopeError("The current node list is empty")
        return self.nodes[0]

    def filter(self, selector: str) -> "SoupScope":
        matched = []
        seen = set()  # Deduplicate by Python object id across overlapping nodes

        for node in self.nodes:
            try:
                candidates = self._match_within(node, selector)
            except soupsieve.SelectorSyntaxError as e:
                logger.warning(f"Invalid CSS '{selector}': {e}")
                return SoupScope([])

            for elem in candidates:
                if id(elem) not in seen:
                    matched.append(elem)
                    seen.add(id(elem))

        return SoupScope(matched)

    @staticmethod
    def _match_within(node: Tag, selector: str) -> list[Tag]:
        """
        The node and its descendants that match, with the node as the root.

        Combinators only see the node's subtree: "ul li" run on an <li> does not
        match that <li> through an ancestor <ul> outside the scope. Matching runs
        on a detached copy, and matches are mapped back to the original nodes.
        """
        detached = copy.copy(node)
        originals = {
            id(clone): original
            for clone, original in zip(
                [detached, *detached.descendants],
                [node, *node.descendants],
            )
        }

        candidates = []
        if detached.css.match(selector):
            candidates.append(detached)
        candidates.extend(detached.select(selector))
        return [originals[id(clone)] for clone in candidates]

    def count(self) -> int:
        return len(self.nodes)

    def attr(self, name: str) -> Optional[str]:
        value = self._first().get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def html(self) -> str:
        return self._first().decode_contents(formatter=SERIALIZER)

    def outer_html(self) -> str:
        return self._first().decode(formatter=SERIALIZER)

    def text(self) -> str:
        return WHITESPACE_RUN.sub(" ", self._first().get_text()).strip(HTML_WHITESPACE)

    def node_name(self) -> str:
        return self._first().name.lower()

    def children(self) -> "SoupScope":
        return SoupScope([child for child in self._first().children if isinstance(child, Tag)])

    def child_nodes(self) -> list[ChildNode]:
        nodes = []
        for child in self._first().children:
            if isinstance(child, Tag):
                nodes.append(ChildNode(NodeKind.ELEMENT, child.decode(formatter=SERIALIZER)))
            elif isinstance(child, PreformattedString):
                # Comment, CData, Doctype and friends subclass NavigableString too
                nodes.append(ChildNode(NodeKind.OTHER, str(child)))
            elif isinstance(child, NavigableString):
                nodes.append(ChildNode(NodeKind.TEXT, str(child)))
        return nodes

    def each(self, fn: Callable[[DomScope], Any]) -> list:
        return [fn(SoupScope([node])) for node in self.nodes]

    def __repr__(self) -> str:
        names = ", ".join(node.name for node in self.nodes[:5])
        return f"SoupScope([{names}{', ...' if len(self.nodes) > 5 else ''}])"
