"""
Structural merge into existing Python sources.

The file is parsed with :mod:`ast` only to validate it and to locate
declarations. New members are spliced into the original text line by line,
so every untouched line (comments, formatting, hand-written functions) is
kept exactly as it was.
"""

from __future__ import annotations

import ast
from pathlib import Path

from ..core.errors import make_merge_error, make_parse_error


class PythonSource:
    """
    An editable Python module.

    Every edit re-parses the text, so positions are always current and a
    splice that produced invalid source is caught immediately.

    Example:
        src = PythonSource(path.read_text(), path)
        src.add_class_fields("Order", [("total", "total: int = 0")])
        path.write_text(src.text)
    """

    def __init__(self, text: str, path: Path):
        self.path = path
        self.text = text
        self.tree = self._parse(text)

    def _parse(self, text: str) -> ast.Module:
        try:
            return ast.parse(text, filename=str(self.path))
        except SyntaxError as e:
            raise make_parse_error(
                f"not valid Python: {e.msg}", self.path, e.lineno or 0, e.offset or 0
            ) from e

    def _splice(self, index: int, new_lines: list[str]) -> None:
        """Insert ``new_lines`` before 0-based line ``index``."""
        lines = self.text.splitlines(keepends=True)
        if lines and not lines[-1].endswith("\n"):
            lines[-1] += "\n"
        lines[index:index] = [line + "\n" if line else "\n" for line in new_lines]
        text = "".join(lines)
        self.tree = self._parse(text)
        self.text = text

    # -- lookups --------------------------------------------------------------

    def find_class(self, name: str) -> ast.ClassDef:
        for node in self.tree.body:
            if isinstance(node, ast.ClassDef) and node.name == name:
                return node
        raise make_merge_error(f"class {name} not found", self.path)

    def function_names(self) -> set[str]:
        return {
            node.name
            for node in self.tree.body
            if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef)
        }

    def _find_assignment(self, name: str) -> ast.Assign | ast.AnnAssign:
        for node in self.tree.body:
            if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
                if node.target.id == name:
                    return node
            if isinstance(node, ast.Assign):
                if any(isinstance(t, ast.Name) and t.id == name for t in node.targets):
                    return node
        raise make_merge_error(f"{name} assignment not found", self.path)

    def _body_indent(self, cls: ast.ClassDef) -> str:
        first = cls.body[0]
        if first.lineno == cls.lineno:
            raise make_merge_error(f"class {cls.name} has a single-line body", self.path)
        return " " * first.col_offset

    # -- class members --------------------------------------------------------

    def add_class_fields(self, class_name: str, fields: list[tuple[str, str]]) -> list[str]:
        """
        Add annotated attributes to a class.

        Args:
            class_name: Class to extend
            fields: ``(attribute name, unindented line)`` pairs

        Returns:
            Names that were added; attributes already declared are skipped
        """
        if not fields:
            return []
        cls = self.find_class(class_name)
        existing = {
            node.target.id
            for node in cls.body
            if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name)
        }
        missing = [(name, line) for name, line in fields if name not in existing]
        if not missing:
            return []

        indent = self._body_indent(cls)
        annotated = [n for n in cls.body if isinstance(n, ast.AnnAssign)]
        new_lines = [indent + line for _, line in missing]
        if annotated:
            index = annotated[-1].end_lineno
        elif _has_docstring(cls):
            index = cls.body[0].end_lineno
            new_lines.insert(0, "")
        else:
            first = cls.body[0]
            decorators = getattr(first, "decorator_list", [])
            index = min([first.lineno, *(d.lineno for d in decorators)]) - 1
        self._splice(index, new_lines)
        return [name for name, _ in missing]

    def add_methods(self, class_name: str, methods: list[tuple[str, str]]) -> list[str]:
        """
        Append methods to the end of a class body.

        Args:
            class_name: Class to extend
            methods: ``(method name, unindented block)`` pairs
        """
        if not methods:
            return []
        cls = self.find_class(class_name)
        existing = {
            node.name
            for node in cls.body
            if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef)
        }
        added = []
        for name, block in methods:
            if name in existing:
                continue
            cls = self.find_class(class_name)
            indent = self._body_indent(cls)
            block_lines = [indent + line if line else "" for line in block.split("\n")]
            self._splice(cls.end_lineno, ["", *block_lines])
            added.append(name)
        return added

    # -- module level -----------------------------------------------------------

    def add_functions_before(self, anchor: str, functions: list[tuple[str, str]]) -> list[str]:
        """
        Insert top-level functions just above the assignment to ``anchor``.

        Raises:
            MergeTargetNotFound: If ``anchor`` is never assigned at module level
        """
        existing = self.function_names()
        added = []
        for name, block in functions:
            if name in existing:
                continue
            node = self._find_assignment(anchor)
            self._splice(node.lineno - 1, [*block.split("\n"), "", ""])
            added.append(name)
        return added

    def append_functions(self, functions: list[tuple[str, str]]) -> list[str]:
        """Append top-level functions whose names are not defined yet."""
        existing = self.function_names()
        added = []
        for name, block in functions:
            if name in existing:
                continue
            lines = self.text.rstrip("\n").split("\n") if self.text.strip() else []
            self.text = "\n".join(lines) + "\n" if lines else ""
            separator = ["", ""] if lines else []
            self._splice(len(lines), [*separator, *block.split("\n")])
            added.append(name)
        return added

    def add_list_entries(self, name: str, entries: list[tuple[str, str]]) -> list[str]:
        """
        Add entries to a module-level list literal.

        Args:
            name: Variable the list is assigned to
            entries: ``(key, expression)`` pairs; an entry is present when
                its key appears as a name inside the list

        Raises:
            MergeTargetNotFound: If ``name`` is not assigned a list literal
        """
        node = self._find_assignment(name)
        value = node.value
        if not isinstance(value, ast.List):
            raise make_merge_error(f"{name} is not a list literal", self.path)
        present = {n.id for n in ast.walk(value) if isinstance(n, ast.Name)}
        missing = [(key, expr) for key, expr in entries if key not in present]
        if not missing:
            return []

        lines = self.text.splitlines(keepends=True)
        if value.lineno == value.end_lineno:
            # Single-line literal: rewrite it as one entry per line
            line = lines[value.lineno - 1]
            raw = line.encode()
            head = raw[: value.col_offset].decode()
            tail = raw[value.end_col_offset :].decode()
            items = [ast.get_source_segment(self.text, elt) for elt in value.elts]
            items += [expr for _, expr in missing]
            block = [head + "["] + [f"    {item}," for item in items] + ["]" + tail.rstrip("\n")]
            lines[value.lineno - 1 : value.lineno] = [b + "\n" for b in block]
            text = "".join(lines)
            self.tree = self._parse(text)
            self.text = text
            return [key for key, _ in missing]

        if value.elts:
            last = value.elts[-1]
            indent = " " * value.elts[0].col_offset
            between = self._text_between(last.end_lineno, last.end_col_offset, value.end_lineno, value.end_col_offset - 1)
            if "," not in between.split("#")[0]:
                row = lines[last.end_lineno - 1].encode()
                lines[last.end_lineno - 1] = (
                    row[: last.end_col_offset] + b"," + row[last.end_col_offset :]
                ).decode()
                self.text = "".join(lines)
        else:
            indent = " " * (_line_indent(lines[value.end_lineno - 1]) + 4)
        self._splice(value.end_lineno - 1, [f"{indent}{expr}," for _, expr in missing])
        return [key for key, _ in missing]

    def _text_between(self, line1: int, col1: int, line2: int, col2: int) -> str:
        lines = self.text.splitlines(keepends=True)
        if line1 == line2:
            return lines[line1 - 1].encode()[col1:col2].decode()
        parts = [lines[line1 - 1].encode()[col1:].decode()]
        parts += lines[line1 : line2 - 1]
        parts.append(lines[line2 - 1].encode()[:col2].decode())
        return "".join(parts)


def _has_docstring(cls: ast.ClassDef) -> bool:
    first = cls.body[0]
    return (
        isinstance(first, ast.Expr)
        and isinstance(first.value, ast.Constant)
        and isinstance(first.value.value, str)
    )


def _line_indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))
