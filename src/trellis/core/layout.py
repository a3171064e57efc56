"""
Layout of the generated application tree and read-only probes of it.

All paths derive from an explicit ``root`` and dotted ``module``; nothing
here consults the process working directory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ArtifactIOError, InputError
from .ir import ConceptSpec, OrchestratorSpec, ProjectionSpec
from .strings import is_identifier

MIGRATION_PREFIX_WIDTH = 4

_MIGRATION_NAME = re.compile(r"^(\d+)_.+\.sql$")
_CREATE_COLUMNS = re.compile(r"CREATE\s+TABLE[^(]*\((.*)\)", re.IGNORECASE | re.DOTALL)
_ADD_COLUMN = re.compile(r"ADD\s+COLUMN\s+\"?(\w+)\"?", re.IGNORECASE)


@dataclass(frozen=True)
class TreeLayout:
    """
    Deterministic artifact paths for a module inside a root directory.

    Example:
        >>> layout = TreeLayout(Path("/srv/shop"), "shop")
        >>> layout.domain_model(concept)
        PosixPath('/srv/shop/shop/domain/order/model.py')
    """

    root: Path
    module: str = "app"

    def __post_init__(self) -> None:
        if not all(is_identifier(part) for part in self.module.split(".")):
            raise InputError(f"Module name must be a dotted Python identifier, got {self.module!r}")

    @property
    def package_dir(self) -> Path:
        return self.root.joinpath(*self.module.split("."))

    # -- domain & storage ------------------------------------------------------

    def domain_model(self, concept: ConceptSpec) -> Path:
        return self.package_dir / "domain" / concept.module_name / "model.py"

    def store_interface(self, concept: ConceptSpec) -> Path:
        return self.package_dir / "storage" / concept.module_name / "store.py"

    def sqlite_store(self, concept: ConceptSpec) -> Path:
        return self.package_dir / "storage" / concept.module_name / "sqlite_store.py"

    @property
    def db_helper(self) -> Path:
        return self.package_dir / "storage" / "db.py"

    @property
    def migrations_dir(self) -> Path:
        return self.package_dir / "storage" / "migrations"

    # -- application -------------------------------------------------------------

    def orchestrator(self, orch: OrchestratorSpec) -> Path:
        return self.package_dir / "application" / "orchestrators" / f"{orch.module_name}.py"

    def projection(self, proj: ProjectionSpec) -> Path:
        return self.package_dir / "application" / "projections" / f"{proj.module_name}.py"

    # -- http --------------------------------------------------------------------

    @property
    def routes_file(self) -> Path:
        return self.package_dir / "http" / "routes.py"

    @property
    def templates_dir(self) -> Path:
        return self.package_dir / "http" / "templates"

    @property
    def layout_template(self) -> Path:
        return self.templates_dir / "layout.html"

    def form_template(self, orch: OrchestratorSpec) -> Path:
        return self.templates_dir / f"form_{orch.module_name}.html"

    def view_template(self, proj: ProjectionSpec) -> Path:
        return self.templates_dir / f"{proj.module_name}.html"

    # -- tests -------------------------------------------------------------------

    @property
    def tests_file(self) -> Path:
        return self.root / "tests" / "test_routes.py"

    # -- imports -----------------------------------------------------------------

    def import_path(self, *parts: str) -> str:
        """Dotted import path of a generated module: ``import_path("domain", "order", "model")``."""
        return ".".join([self.module, *parts])

    def relative(self, path: Path) -> str:
        """Path relative to the root, for messages."""
        try:
            return str(path.relative_to(self.root))
        except ValueError:
            return str(path)


class FileProbe:
    """
    Read-only view of what already exists in the generated tree.

    The reconciler uses it to restore deleted artifacts; the migration
    deriver uses it to avoid re-emitting migrations and to number new ones.
    """

    def __init__(self, layout: TreeLayout):
        self.layout = layout

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def migration_files(self) -> list[Path]:
        directory = self.layout.migrations_dir
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if _MIGRATION_NAME.match(p.name))

    def next_migration_number(self) -> int:
        numbers = [int(_MIGRATION_NAME.match(p.name).group(1)) for p in self.migration_files()]
        return max(numbers, default=0) + 1

    def create_migration(self, table: str) -> Path | None:
        pattern = re.compile(rf"^\d+_create_{re.escape(table)}\.sql$")
        for path in self.migration_files():
            if pattern.match(path.name):
                return path
        return None

    def alter_migration(self, table: str, column: str) -> Path | None:
        pattern = re.compile(rf"^\d+_alter_{re.escape(table)}_add_{re.escape(column)}\.sql$")
        for path in self.migration_files():
            if pattern.match(path.name):
                return path
        return None

    def migrated_columns(self, table: str) -> set[str]:
        """Columns defined for ``table`` by its create and alter migrations."""
        columns: set[str] = set()
        create = self.create_migration(table)
        if create is not None:
            match = _CREATE_COLUMNS.search(_read_sql(create))
            if match:
                for definition in match.group(1).split(","):
                    words = definition.split()
                    if words:
                        columns.add(words[0].strip('"').lower())
        alter_prefix = re.compile(rf"^\d+_alter_{re.escape(table)}_add_\w+\.sql$")
        for path in self.migration_files():
            if alter_prefix.match(path.name):
                columns.update(c.lower() for c in _ADD_COLUMN.findall(_read_sql(path)))
        return columns


def _read_sql(path: Path) -> str:
    # Column names are ASCII; other bytes are never inspected
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ArtifactIOError(f"Cannot read {path}: {e}") from e


def format_migration_name(number: int, action: str) -> str:
    return f"{number:0{MIGRATION_PREFIX_WIDTH}d}_{action}.sql"
