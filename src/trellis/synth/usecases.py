"""
Application layer: orchestrator and projection stubs.
"""

from __future__ import annotations

from .generator import Generator, GeneratorResult
from .snippets import field_line


class UseCaseGenerator(Generator):
    """Create use-case modules, or add new members to their input/query/result types."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()

        for edit in self.plan.orchestrators:
            orch = edit.entity
            path = self.layout.orchestrator(orch)
            if not path.exists():
                self._write_file(path, self.renderer.render("orchestrator.py.j2", orch=orch), result)
            elif edit.new_members:
                params = [(f.attr, field_line(f)) for f in edit.members("params")]
                self._merge_python(
                    path,
                    lambda source, name=f"{orch.name}Input", params=params: source.add_class_fields(
                        name, params
                    ),
                    result,
                    [edit.owner_key],
                )

        for edit in self.plan.projections:
            proj = edit.entity
            path = self.layout.projection(proj)
            if not path.exists():
                self._write_file(path, self.renderer.render("projection.py.j2", proj=proj), result)
            elif edit.new_members:
                query = [(f.attr, field_line(f)) for f in edit.members("query")]
                res = [(f.attr, field_line(f)) for f in edit.members("result")]

                def extend(source, name=proj.name, query=query, res=res):
                    return source.add_class_fields(f"{name}Query", query) + source.add_class_fields(
                        f"{name}Result", res
                    )

                self._merge_python(path, extend, result, [edit.owner_key])

        return result
