"""
Source fragments shared by fresh renders and structural merges.

Templates call these through jinja globals and the mergers insert the same
text, so a file created in one run and a file extended over several runs
end up with identical members.
"""

from __future__ import annotations

from ..core.ir import FieldKind, FieldSpec, HttpMethod, MethodSpec, RouteSpec
from ..core.layout import TreeLayout
from ..core.strings import e2e_test_name, http_test_name, to_snake_case


def doc_text(text: str) -> str:
    """Collapse text onto one line that is safe inside a triple-quoted docstring."""
    return " ".join(text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"').split())


def _comment_text(text: str) -> str:
    return " ".join(text.split())


def field_line(field: FieldSpec) -> str:
    """Dataclass member line: ``unit_price: float = 0.0  # doc``."""
    line = f"{field.attr}: {field.type.python_type} = {field.type.default_literal}"
    notes = []
    if field.type.kind is FieldKind.CUSTOM:
        notes.append(str(field.type))
    if field.doc:
        notes.append(_comment_text(field.doc))
    if notes:
        line += "  # " + "; ".join(notes)
    return line


def method_block(method: MethodSpec, owner: str) -> str:
    """Unindented stub method with contract notes in its docstring."""
    summary = doc_text(method.description) if method.description else f"{method.name} on {owner}."
    contract = [
        (label, value)
        for label, value in (
            ("Pre-condition", method.pre_condition),
            ("Post-condition", method.post_condition),
            ("Invariant", method.invariant),
        )
        if value
    ]
    lines = [f"def {method.attr}(self) -> None:"]
    if contract:
        lines.append('    """')
        lines.append(f"    {summary}")
        lines.append("")
        lines.extend(f"    {label}: {doc_text(value)}" for label, value in contract)
        lines.append('    """')
    else:
        lines.append(f'    """{summary}"""')
    lines.append(f"    # TODO: implement {owner}.{method.name}")
    lines.append(f'    raise NotImplementedError("{owner}.{method.attr}")')
    return "\n".join(lines)


# =============================================================================
# Route wiring
# =============================================================================


def template_name(route: RouteSpec) -> str:
    stem = to_snake_case(route.target)
    return f"{stem}.html" if route.method is HttpMethod.GET else f"form_{stem}.html"


def handler_block(route: RouteSpec, layout: TreeLayout) -> str:
    """Top-level handler function calling the route's use-case stub."""
    stem = to_snake_case(route.target)
    name = route.handler_name
    signature = f"def {name}(values: dict[str, Any]) -> tuple[str, dict[str, Any]]:"
    if route.method is HttpMethod.GET:
        module = layout.import_path("application", "projections", stem)
        body = [
            f'    """{route.method.value} {route.path} -> {route.target}"""',
            f"    from {module} import {route.target}Query, {stem}",
            "",
            f"    query = {route.target}Query(**values)",
            f"    result = {stem}(query)",
            f'    return "{template_name(route)}", {{"query": query, "result": result}}',
        ]
    else:
        module = layout.import_path("application", "orchestrators", stem)
        body = [
            f'    """{route.method.value} {route.path} -> {route.target}"""',
            f"    from {module} import {route.target}Input, {stem}",
            "",
            f"    data = {route.target}Input(**values)",
            f"    {stem}(data)",
            f'    return "{template_name(route)}", {{"data": data}}',
        ]
    return "\n".join([signature, *body])


def route_entry(route: RouteSpec) -> str:
    return (
        f'RouteEntry("{route.method.value}", "{route.path}", '
        f'{route.handler_name}, "{template_name(route)}")'
    )


# =============================================================================
# HTML
# =============================================================================


def input_lines(field: FieldSpec) -> list[str]:
    """Label and input for one form field, unindented."""
    return [
        f'<label for="{field.attr}">{field.name}</label>',
        f'<input {field.type.input_attrs} id="{field.attr}" name="{field.attr}">',
    ]


def binding_lines(field: FieldSpec) -> list[str]:
    """Definition-list entry showing one result value, unindented."""
    return [
        f"<dt>{field.name}</dt>",
        f"<dd>{{{{ result.{field.attr} }}}}</dd>",
    ]


def input_marker(field: FieldSpec) -> str:
    return f'name="{field.attr}"'


def binding_marker(field: FieldSpec) -> str:
    return f"{{{{ result.{field.attr} }}}}"


def form_method(route: RouteSpec) -> str:
    """HTML forms only speak GET and POST; other verbs travel in ``_method``."""
    return "get" if route.method is HttpMethod.GET else "post"


# =============================================================================
# Tests
# =============================================================================


def http_test_block(route: RouteSpec) -> str:
    return "\n".join(
        [
            f"def {http_test_name(route.method.value, route.target)}():",
            f'    """{route.method.value} {route.path} -> {route.target}"""',
            f'    pytest.skip("TODO: exercise {route.method.value} {route.path}")',
        ]
    )


def e2e_test_block(route: RouteSpec) -> str:
    return "\n".join(
        [
            f"def {e2e_test_name(route.target)}():",
            f'    """End to end: {route.method.value} {route.path} -> {route.target}"""',
            f'    pytest.skip("TODO: drive {route.method.value} {route.path} end to end")',
        ]
    )
