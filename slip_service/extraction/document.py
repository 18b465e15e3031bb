# slip_service/extraction/document.py
"""
Read-only view over a fetched share page.

Markup is parsed once with selectolax. Its visible text, with one text node per
line, is the coordinate system every extractor uses for offsets. Plain text
(for example OCR output or a pasted slip) is used as-is.
"""

import re
from functools import cached_property
from typing import List
from typing import Optional
from typing import Tuple

from selectolax.parser import HTMLParser
from selectolax.parser import Node

MARKUP_HINT = re.compile(r"<\s*(?:!doctype|html|body|div|span|section|table|ul|li|p)\b", re.IGNORECASE)
NON_VISIBLE_TAGS = ["script", "style", "noscript", "template", "svg"]
ELEMENT_SELECTOR = "div, li, tr, td, span, p, section, article, a, label"


class SlipDocument:
    def __init__(self, raw: Optional[str]):
        self.raw = raw or ""
        self.is_markup = bool(MARKUP_HINT.search(self.raw))
        self._parser: Optional[HTMLParser] = None
        if self.is_markup:
            self._parser = HTMLParser(self.raw)
            self._parser.strip_tags(NON_VISIBLE_TAGS)

    @cached_property
    def text(self) -> str:
        if self._parser is None:
            return self.raw
        root = self._parser.body or self._parser.root
        if root is None:
            return ""
        return node_text(root)

    def css(self, selector: str) -> List[Node]:
        if self._parser is None:
            return []
        return self._parser.css(selector)

    def css_first(self, selector: str) -> Optional[Node]:
        if self._parser is None:
            return None
        return self._parser.css_first(selector)

    @cached_property
    def element_texts(self) -> List[Tuple[Node, str]]:
        """Every candidate element in document order with its flattened, single-line text."""
        elements = []
        for node in self.css(ELEMENT_SELECTOR):
            flat = " ".join(node.text(separator=" ", strip=True).split())
            if flat:
                elements.append((node, flat))
        return elements

    def offset_of(self, fragment: str) -> int:
        """Offset of a region's text inside the document text, or 0 when it cannot be located."""
        if not fragment:
            return 0
        offset = self.text.find(fragment)
        return offset if offset >= 0 else 0


def node_text(node: Node) -> str:
    """Text of a node with one text node per line, in the same layout as ``SlipDocument.text``."""
    lines = (line.strip() for line in node.text(separator="\n", strip=True).split("\n"))
    return "\n".join(line for line in lines if line)
