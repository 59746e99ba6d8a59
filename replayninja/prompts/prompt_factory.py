"""
Prompt templates of the LLM locator healer.

Templates are markdown files shipped in this package. `[[VARIABLE_NAME]]`
placeholders are filled in one pass, so page HTML that happens to contain
`[[...]]` is never expanded.

## Usage Examples

```python
from replayninja.prompts.prompt_factory import get_healer_system_prompt, get_healer_user_prompt

system_prompt = get_healer_system_prompt()
user_prompt = get_healer_user_prompt(descriptor, url="https://example.com", dom_snippet=html)
```
"""

import importlib.resources
import json
import re
from functools import lru_cache
from typing import Dict, Optional

from replayninja.schemas.session import ElementDescriptor

PROMPT_PACKAGE = "replayninja.prompts"
DOM_TRUNCATION_MARKER = "\n... [TRUNCATED]"

_PLACEHOLDER = re.compile(r"\[\[([A-Z_]+)\]\]")


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Text of one template file.

    Raises:
        FileNotFoundError: If the package does not ship `name`
    """
    resource = importlib.resources.files(PROMPT_PACKAGE).joinpath(name)
    if not resource.is_file():
        raise FileNotFoundError(f"Prompt template not found: {PROMPT_PACKAGE}/{name}")
    return resource.read_text(encoding="utf-8")


def render_prompt(name: str, values: Dict[str, str]) -> str:
    """Fill every placeholder of template `name`.

    Raises:
        KeyError: If the template uses a placeholder missing from `values`
    """

    def fill(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in values:
            raise KeyError(f"No value for [[{key}]] in {name}")
        return values[key]

    return _PLACEHOLDER.sub(fill, load_prompt(name))


def truncate_dom(dom_source: Optional[str], max_chars: int) -> str:
    """Cut the DOM source to `max_chars`, marking the cut."""
    if not dom_source:
        return ""
    if len(dom_source) <= max_chars:
        return dom_source
    return dom_source[:max_chars] + DOM_TRUNCATION_MARKER


#! -------------------------


def get_healer_system_prompt() -> str:
    return load_prompt("healer_system_prompt.md")


def get_healer_user_prompt(descriptor: ElementDescriptor, url: str, dom_snippet: str) -> str:
    """Generate the user prompt for one failed element.

    Args:
        descriptor (ElementDescriptor): Descriptor that failed every locator strategy
        url (str): Current page URL
        dom_snippet (str): Page HTML, already truncated by the caller

    Returns:
        str: Formatted user prompt
    """

    def show(value: Optional[str]) -> str:
        return value if value else "null"

    return render_prompt(
        "healer_user_prompt.md",
        {
            "TAG": show(descriptor.tag_name),
            "ID": show(descriptor.id),
            "NAME": show(descriptor.name),
            "CSS": show(descriptor.css),
            "XPATH": show(descriptor.xpath),
            "TEXT": show(descriptor.text),
            "ATTRIBUTES": json.dumps(descriptor.attributes, ensure_ascii=False, default=str),
            "URL": show(url),
            "DOM": dom_snippet,
        },
    )
