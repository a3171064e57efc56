"""
Base generator classes for artifact synthesis.

Each generator owns one layer of the tree:
- ConceptGenerator: domain types and storage
- UseCaseGenerator: orchestrator and projection stubs
- RouteGenerator: route wiring and HTML templates
- MigrationGenerator: schema migrations
- TestStubGenerator: route test stubs

Generators write only when content changes, and turn merge failures into
per-artifact skips instead of aborting the run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..core.errors import ArtifactIOError, MergeTargetNotFound, ParseError, make_parse_error
from ..core.layout import FileProbe, TreeLayout
from ..core.reconciler import EditPlan
from .html_merge import HtmlTemplate
from .python_merge import PythonSource
from .renderer import TemplateRenderer

logger = logging.getLogger(__name__)

Owner = tuple[str, str]


@dataclass
class Skip:
    """An artifact left untouched because it could not be merged."""

    path: Path
    reason: str
    owners: tuple[Owner, ...] = ()


@dataclass
class GeneratorResult:
    """
    Result from a generator execution.

    Attributes:
        files_created: Files written for the first time
        files_updated: Existing files whose content changed
        skipped: Artifacts skipped on ParseError or MergeTargetNotFound
        warnings: Anything else worth telling the user
    """

    files_created: list[Path] = field(default_factory=list)
    files_updated: list[Path] = field(default_factory=list)
    skipped: list[Skip] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def failed_owners(self) -> set[Owner]:
        return {owner for skip in self.skipped for owner in skip.owners}

    def add_created(self, path: Path) -> None:
        self.files_created.append(path)

    def add_updated(self, path: Path) -> None:
        self.files_updated.append(path)

    def add_skip(self, path: Path, reason: str, owners: Iterable[Owner] = ()) -> None:
        self.skipped.append(Skip(path=path, reason=reason, owners=tuple(owners)))

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def merge(self, other: GeneratorResult) -> None:
        """Merge another result into this one."""
        self.files_created.extend(other.files_created)
        self.files_updated.extend(other.files_updated)
        self.skipped.extend(other.skipped)
        self.warnings.extend(other.warnings)


class Generator(ABC):
    """
    Base class for all generators.

    A generator applies the part of an EditPlan that concerns its layer.

    Example:
        class ConceptGenerator(Generator):
            def generate(self) -> GeneratorResult:
                result = GeneratorResult()
                for edit in self.plan.concepts:
                    path = self.layout.domain_model(edit.entity)
                    if not path.exists():
                        self._write_file(path, self._render(...), result)
                return result
    """

    def __init__(self, plan: EditPlan, layout: TreeLayout, renderer: TemplateRenderer | None = None):
        """
        Initialize generator.

        Args:
            plan: Edits to apply
            layout: Paths of the target tree
            renderer: Template renderer (created for ``layout`` if omitted)
        """
        self.plan = plan
        self.layout = layout
        self.probe = FileProbe(layout)
        self.renderer = renderer or TemplateRenderer(layout)

    @abstractmethod
    def generate(self) -> GeneratorResult:
        """
        Apply this generator's edits.

        Returns:
            GeneratorResult with files written and artifacts skipped
        """
        pass

    def _ensure_dir(self, path: Path) -> None:
        """Ensure a directory exists."""
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactIOError(f"Cannot create directory {path}: {e}") from e

    def _read_file(self, path: Path) -> str:
        """
        Read an existing artifact as UTF-8.

        Raises:
            ParseError: If the file is not valid UTF-8 (the artifact is skipped)
            ArtifactIOError: If the file cannot be read
        """
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise make_parse_error(f"not valid UTF-8: {e.reason} at byte {e.start}", path) from e
        except OSError as e:
            raise ArtifactIOError(f"Cannot read {self.layout.relative(path)}: {e}") from e

    def _unchanged(self, path: Path, content: str) -> bool:
        try:
            return path.read_bytes() == content.encode("utf-8")
        except OSError as e:
            raise ArtifactIOError(f"Cannot read {self.layout.relative(path)}: {e}") from e

    def _write_file(self, path: Path, content: str, result: GeneratorResult) -> None:
        """Write ``content`` if it differs from what is on disk."""
        existed = path.exists()
        if existed and self._unchanged(path, content):
            return
        self._ensure_dir(path.parent)
        if path.suffix == ".py":
            self._ensure_packages(path.parent, result)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ArtifactIOError(f"Cannot write {self.layout.relative(path)}: {e}") from e
        if existed:
            result.add_updated(path)
            logger.info("Updated %s", self.layout.relative(path))
        else:
            result.add_created(path)
            logger.info("Created %s", self.layout.relative(path))

    def _write_new_file(self, path: Path, content: str, result: GeneratorResult) -> None:
        """Write a file only if it does not exist yet."""
        if not path.exists():
            self._write_file(path, content, result)

    def _ensure_packages(self, directory: Path, result: GeneratorResult) -> None:
        """Create missing ``__init__.py`` files from the module root down to ``directory``."""
        root = self.layout.root
        try:
            relative = directory.relative_to(root)
        except ValueError:
            return
        if not relative.parts or relative.parts[0] != self.layout.module.split(".")[0]:
            return
        current = root
        for part in relative.parts:
            current = current / part
            init = current / "__init__.py"
            if not init.exists():
                dotted = ".".join(current.relative_to(root).parts)
                content = self.renderer.render("package_init.py.j2", description=f"{dotted} package.")
                self._ensure_dir(current)
                try:
                    init.write_text(content, encoding="utf-8")
                except OSError as e:
                    raise ArtifactIOError(f"Cannot write {self.layout.relative(init)}: {e}") from e
                result.add_created(init)

    # -- merging ----------------------------------------------------------------

    def _merge_python(
        self,
        path: Path,
        edit: Callable[[PythonSource], list[str]],
        result: GeneratorResult,
        owners: Iterable[Owner],
    ) -> None:
        """Apply a structural edit to an existing Python file, or record a skip."""
        try:
            source = PythonSource(self._read_file(path), path)
            edit(source)
        except (ParseError, MergeTargetNotFound) as e:
            self._skip(path, e, result, owners)
            return
        self._write_file(path, source.text, result)

    def _merge_html(
        self,
        path: Path,
        edit: Callable[[HtmlTemplate], list[str]],
        result: GeneratorResult,
        owners: Iterable[Owner],
    ) -> None:
        try:
            template = HtmlTemplate(self._read_file(path), path)
            edit(template)
        except (ParseError, MergeTargetNotFound) as e:
            self._skip(path, e, result, owners)
            return
        self._write_file(path, template.text, result)

    def _skip(self, path: Path, error: Exception, result: GeneratorResult, owners: Iterable[Owner]) -> None:
        reason = str(error)
        logger.warning("Skipping %s: %s", self.layout.relative(path), reason)
        result.add_skip(path, reason, owners)
