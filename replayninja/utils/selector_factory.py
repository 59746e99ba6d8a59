"""
XPath candidate generation and validation over a DOM snapshot.

This module parses a page source with lxml and answers two questions for the
healing services: how many elements a given XPath matches in the snapshot,
and which XPaths can be built from what was recorded about an element (tag,
visible text, stable attributes, id fragments).

## Key Components

1. **SelectorSpecificity** - Enum for selector match results
2. **SelectorFactory** - XPath generation and validation against one snapshot

## Usage Examples

```python
from replayninja.utils import SelectorFactory, SelectorSpecificity

factory = SelectorFactory(page_source)
if factory.evaluate_selector_on_page("//button[@id='submit']") == SelectorSpecificity.UNIQUE_MATCH:
    print("unique")
```
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from lxml import etree, html
from lxml.html import HtmlElement

from replayninja.utils.logging_config import logger


class SelectorSpecificity(str, Enum):
    """Enumeration of XPath selector match results.

    Values:
        NOT_FOUND (1): No elements found matching the selector
        MULTIPLE_MATCH (2): Multiple elements found matching the selector
        UNIQUE_MATCH (3): Exactly one element found matching the selector
    """

    NOT_FOUND = 1
    MULTIPLE_MATCH = 2
    UNIQUE_MATCH = 3


BANNED_XPATH_TAG_ELEMENTS: List[str] = ["script", "style"]

#: attributes that usually survive redesigns better than ids and classes
STABLE_ATTRIBUTES: List[str] = [
    "data-testid",
    "data-test",
    "data-qa",
    "aria-label",
    "placeholder",
    "title",
    "alt",
    "name",
]

TEXT_MATCH_MAX_CHARS: int = 30


def xpath_literal(value: str) -> str:
    """Quote a string for use inside an XPath 1.0 expression."""
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"


class SelectorFactory:
    """Factory for generating and validating XPath selectors against a DOM snapshot.

    Attributes:
        tree (HtmlElement): Parsed HTML tree from the provided content
    """

    def __init__(self, html_content: str):
        """Initialize the SelectorFactory with HTML content.

        Args:
            html_content (str): HTML content to parse and work with
        """
        self.tree: HtmlElement = html.fromstring(html_content or "<html></html>")

    def evaluate_selector_on_page(self, xpath: str) -> SelectorSpecificity:
        """Evaluate XPath selector and return its specificity.

        Args:
            xpath (str): XPath selector to evaluate

        Returns:
            SelectorSpecificity: Result of the selector evaluation; invalid
            expressions count as NOT_FOUND
        """
        found_elements: Optional[Any] = None

        try:
            found_elements = self.tree.xpath(xpath)
        except etree.XPathError as e:
            logger.warning(f"Invalid XPath expression: {xpath} ({e})")

        if not found_elements:
            return SelectorSpecificity.NOT_FOUND
        elif len(found_elements) > 1:
            return SelectorSpecificity.MULTIPLE_MATCH
        else:
            return SelectorSpecificity.UNIQUE_MATCH

    @staticmethod
    def generate_xpaths_from_hints(
        tag_name: Optional[str],
        text: Optional[str],
        attributes: Dict[str, Any],
        element_id: Optional[str] = None,
    ) -> List[str]:
        """Build candidate XPaths from what was recorded about an element.

        Candidates are ordered from most to least specific: stable attributes,
        tag plus a prefix of the visible text, then fragments of the id.

        Args:
            tag_name (Optional[str]): Recorded tag name (any tag when missing)
            text (Optional[str]): Recorded visible text
            attributes (Dict[str, Any]): Recorded attributes
            element_id (Optional[str]): Recorded id

        Returns:
            List[str]: Candidate XPath expressions, without duplicates
        """
        tag = (tag_name or "*").lower()
        if tag in BANNED_XPATH_TAG_ELEMENTS:
            return []

        xpath_list: List[str] = []

        for attribute in STABLE_ATTRIBUTES:
            value = attributes.get(attribute)
            if value:
                xpath_list.append(f"//{tag}[@{attribute}={xpath_literal(str(value))}]")

        input_type = attributes.get("type")
        if input_type and attributes.get("name"):
            xpath_list.append(
                f"//{tag}[@type={xpath_literal(str(input_type))} and "
                f"@name={xpath_literal(str(attributes['name']))}]"
            )

        if text and text.strip():
            text_prefix = " ".join(text.split())[:TEXT_MATCH_MAX_CHARS]
            xpath_list.append(f"//{tag}[normalize-space(.)={xpath_literal(' '.join(text.split()))}]")
            xpath_list.append(f"//{tag}[contains(normalize-space(.), {xpath_literal(text_prefix)})]")

        #! only single id fragments are tried, split on the usual separators
        if element_id:
            fragments = [
                fragment
                for fragment in element_id.replace("_", "-").split("-")
                if len(fragment) >= 3 and not fragment.isdigit()
            ]
            for fragment in fragments:
                xpath_list.append(f"//{tag}[contains(@id, {xpath_literal(fragment)})]")

        return list(dict.fromkeys(xpath_list))

    def get_unique_xpaths(self, candidates: List[str]) -> List[str]:
        """Keep only the candidates that match exactly one element in the snapshot."""
        return [
            x_path
            for x_path in candidates
            if self.evaluate_selector_on_page(x_path) == SelectorSpecificity.UNIQUE_MATCH
        ]
