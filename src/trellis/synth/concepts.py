"""
Domain and storage layer: one dataclass, one store Protocol and one
SQLite store per concept, plus the shared database helper.
"""

from __future__ import annotations

from ..core.ir import ConceptSpec
from .generator import Generator, GeneratorResult
from .snippets import field_line, method_block


class ConceptGenerator(Generator):
    """
    Create or extend concept artifacts.

    Only the domain type is ever merged into. The store interface and the
    SQLite store are written once; the SQLite store reads its columns from
    the dataclass, so new fields need no edit there.
    """

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        if self.plan.graph.concepts:
            self._write_new_file(
                self.layout.db_helper, self.renderer.render("db.py.j2"), result
            )

        for edit in self.plan.concepts:
            concept: ConceptSpec = edit.entity
            model_module = self.layout.import_path("domain", concept.module_name, "model")

            model_path = self.layout.domain_model(concept)
            if not model_path.exists():
                self._write_file(
                    model_path, self.renderer.render("model.py.j2", concept=concept), result
                )
            elif edit.new_members:
                fields = [(f.attr, field_line(f)) for f in edit.members("fields")]
                methods = [(m.attr, method_block(m, concept.name)) for m in edit.members("methods")]

                def extend(source, name=concept.name, fields=fields, methods=methods):
                    return source.add_class_fields(name, fields) + source.add_methods(name, methods)

                self._merge_python(model_path, extend, result, [edit.owner_key])

            self._write_new_file(
                self.layout.store_interface(concept),
                self.renderer.render("store.py.j2", concept=concept, model_module=model_module),
                result,
            )
            self._write_new_file(
                self.layout.sqlite_store(concept),
                self.renderer.render("sqlite_store.py.j2", concept=concept, model_module=model_module),
                result,
            )
        return result
