from .placeholders import Placeholder, find_tokens, unknown_tokens
from .renderer import TemplateContext, build_context, render, render_proposal

__all__ = [
    "Placeholder",
    "find_tokens",
    "unknown_tokens",
    "TemplateContext",
    "build_context",
    "render",
    "render_proposal",
]
