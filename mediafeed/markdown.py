"""Render MDX bodies to HTML for syndication."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import cast

from markdown_it import MarkdownIt
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

# MDX module statements have no meaning outside the site build.
_MDX_STATEMENT = re.compile(r"^(import|export)\s.*$", re.MULTILINE)
# Custom components such as <PromptBlock> or <Callout type="info" />.
_MDX_COMPONENT = re.compile(r"</?[A-Z][A-Za-z0-9]*(\s[^<>]*)?/?>")


@lru_cache(maxsize=1)
def _renderer() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": False, "typographer": True})
    md.enable("table").enable("strikethrough")
    md.use(footnote_plugin)
    md.use(tasklists_plugin, label=True)
    return md


def strip_mdx(text: str) -> str:
    """Drop MDX statements and component tags, keeping their inner text."""
    text = _MDX_STATEMENT.sub("", text)
    return _MDX_COMPONENT.sub("", text)


def render_body(text: str) -> str:
    """Render an MDX body to HTML, ignoring component markup."""
    cleaned = strip_mdx(text)
    if not cleaned.strip():
        return ""
    return cast(str, _renderer().render(cleaned))
