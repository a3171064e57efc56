"""
Jinja2 rendering of fresh artifacts.

Two environments share one template directory. Python sources use the
default delimiters. HTML templates are themselves Jinja templates of the
generated app, so they are rendered with ``[[ ]]``/``[% %]`` and the
``{{ }}``/``{% %}`` markup passes through untouched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from ..core.errors import TrellisError
from ..core.layout import TreeLayout
from . import snippets

TEMPLATES_DIR = Path(__file__).parent / "templates"


class RenderError(TrellisError):
    """Raised when a bundled template fails to render."""

    pass


class TemplateRenderer:
    """Renders the bundled ``*.j2`` templates for one tree layout."""

    def __init__(self, layout: TreeLayout):
        self.layout = layout
        loader = FileSystemLoader(str(TEMPLATES_DIR))
        common: dict[str, Any] = {
            "loader": loader,
            "undefined": StrictUndefined,
            "trim_blocks": True,
            "lstrip_blocks": True,
            "keep_trailing_newline": True,
        }
        self.code_env = Environment(**common)
        self.html_env = Environment(
            **common,
            block_start_string="[%",
            block_end_string="%]",
            variable_start_string="[[",
            variable_end_string="]]",
            comment_start_string="[#",
            comment_end_string="#]",
        )
        for env in (self.code_env, self.html_env):
            env.globals.update(
                layout=layout,
                module=layout.module,
                field_line=snippets.field_line,
                method_block=snippets.method_block,
                handler_block=snippets.handler_block,
                route_entry=snippets.route_entry,
                input_lines=snippets.input_lines,
                binding_lines=snippets.binding_lines,
                form_method=snippets.form_method,
            )
            env.filters["docline"] = snippets.doc_text

    def render(self, template: str, **context: Any) -> str:
        """
        Render a bundled template.

        ``html/`` templates go through the HTML environment.
        """
        env = self.html_env if template.startswith("html/") else self.code_env
        try:
            return env.get_template(template).render(**context)
        except TemplateError as e:
            raise RenderError(f"Failed to render {template}: {e}") from e
