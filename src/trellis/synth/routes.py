"""
HTTP layer: the route wiring module and one HTML template per route.

With ``force`` both are regenerated from the merged graph; otherwise new
handlers and ``ROUTES`` entries are merged into the existing wiring module
and new inputs or bindings are merged into existing templates.
"""

from __future__ import annotations

from ..core.ir import HttpMethod
from ..core.reconciler import EditKind, RouteEdit
from .generator import Generator, GeneratorResult
from .snippets import (
    binding_lines,
    binding_marker,
    handler_block,
    input_lines,
    input_marker,
    route_entry,
)

ROUTES_ANCHOR = "ROUTES"


class RouteGenerator(Generator):
    """Create, extend or recreate route wiring and templates."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        if not self.plan.routes:
            return result

        self._generate_wiring(result)
        self._write_new_file(
            self.layout.layout_template, self.renderer.render("html/layout.html.j2"), result
        )
        for edit in self.plan.routes:
            self._generate_template(edit, result)
        return result

    def _generate_wiring(self, result: GeneratorResult) -> None:
        path = self.layout.routes_file
        if self.plan.force or not path.exists():
            content = self.renderer.render("routes.py.j2", routes=self.plan.graph.routes)
            self._write_file(path, content, result)
            return

        new = [e.route for e in self.plan.routes if e.kind is EditKind.CREATE]
        if not new:
            return
        handlers = [(r.handler_name, handler_block(r, self.layout)) for r in new]
        entries = [(r.handler_name, route_entry(r)) for r in new]

        def extend(source):
            return source.add_functions_before(ROUTES_ANCHOR, handlers) + source.add_list_entries(
                ROUTES_ANCHOR, entries
            )

        owners = [("route", str(r)) for r in new]
        self._merge_python(path, extend, result, owners)

    def _generate_template(self, edit: RouteEdit, result: GeneratorResult) -> None:
        target = edit.target
        if edit.route.method is HttpMethod.GET:
            path = self.layout.view_template(target)
            template, context = "html/view.html.j2", {"proj": target}
            owner = ("projection", target.name)
        else:
            path = self.layout.form_template(target)
            template, context = "html/form.html.j2", {"orch": target}
            owner = ("orchestrator", target.name)

        if edit.kind is EditKind.RECREATE or self.plan.force or not path.exists():
            self._write_file(path, self.renderer.render(template, route=edit.route, **context), result)
            return
        if not edit.new_members:
            return

        if edit.is_view:
            inputs = [(input_marker(f), input_lines(f)) for f in edit.members("query")]
            bindings = [(binding_marker(f), binding_lines(f)) for f in edit.members("result")]

            def extend(html):
                return html.add_inputs(inputs) + html.add_bindings(bindings)

        else:
            inputs = [(input_marker(f), input_lines(f)) for f in edit.members("params")]

            def extend(html):
                return html.add_inputs(inputs)

        self._merge_html(path, extend, result, [edit.owner_key, owner])
