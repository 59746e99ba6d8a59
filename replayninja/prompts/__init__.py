"""
Prompt templates for ReplayNinja's LLM locator healer.
"""

from .prompt_factory import (
    DOM_TRUNCATION_MARKER,
    get_healer_system_prompt,
    get_healer_user_prompt,
    load_prompt,
    render_prompt,
    truncate_dom,
)

__all__ = [
    "DOM_TRUNCATION_MARKER",
    "get_healer_system_prompt",
    "get_healer_user_prompt",
    "load_prompt",
    "render_prompt",
    "truncate_dom",
]
