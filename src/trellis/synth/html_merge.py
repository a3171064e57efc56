"""
Marker-based merge into existing HTML templates.

Templates are edited as text: new inputs go immediately before the submit
control of the form, new result bindings immediately before the closing
``</dl>``. Presence is decided by the marker each snippet carries
(``name="x"`` for inputs, ``{{ result.x }}`` for bindings).
"""

from __future__ import annotations

import re
from pathlib import Path

from ..core.errors import make_merge_error

_BUTTON = re.compile(r"<button\b", re.IGNORECASE)
_FORM_END = re.compile(r"</form\s*>", re.IGNORECASE)
_DL_END = re.compile(r"</dl\s*>", re.IGNORECASE)


class HtmlTemplate:
    """An editable HTML template."""

    def __init__(self, text: str, path: Path):
        self.text = text
        self.path = path

    def add_inputs(self, inputs: list[tuple[str, list[str]]]) -> list[str]:
        """
        Insert form inputs before the last ``<button``, or before the last
        ``</form>`` when the form has no button.

        Args:
            inputs: ``(marker, unindented lines)`` pairs

        Raises:
            MergeTargetNotFound: If the template has neither marker
        """
        missing = [(m, lines) for m, lines in inputs if m not in self.text]
        if not missing:
            return []
        for pattern in (_BUTTON, _FORM_END):
            if self._insert_before_last(pattern, missing):
                return [m for m, _ in missing]
        raise make_merge_error("no submit control or </form> to insert inputs before", self.path)

    def add_bindings(self, bindings: list[tuple[str, list[str]]]) -> list[str]:
        """
        Insert result bindings before the last ``</dl>``.

        Raises:
            MergeTargetNotFound: If the template has no ``</dl>``
        """
        missing = [(m, lines) for m, lines in bindings if m not in self.text]
        if not missing:
            return []
        if not self._insert_before_last(_DL_END, missing, nested=True):
            raise make_merge_error("no </dl> to insert result bindings before", self.path)
        return [m for m, _ in missing]

    def _insert_before_last(
        self,
        pattern: re.Pattern[str],
        snippets: list[tuple[str, list[str]]],
        nested: bool = False,
    ) -> bool:
        lines = self.text.splitlines(keepends=True)
        for index in range(len(lines) - 1, -1, -1):
            match = pattern.search(lines[index])
            if not match:
                continue
            line = lines[index]
            prefix = line[: match.start()]
            if prefix.strip():
                # Marker shares a line with other markup: split it off
                indent = re.match(r"\s*", line).group(0)
                lines[index : index + 1] = [prefix.rstrip() + "\n", indent + line[match.start() :]]
                index += 1
                prefix = indent
            indent = prefix + ("  " if nested else "")
            new = [indent + text + "\n" for _, snippet in snippets for text in snippet]
            lines[index:index] = new
            self.text = "".join(lines)
            return True
        return False
