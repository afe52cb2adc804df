"""Batch convention check over a whole source tree.

Parses every Java file under a root once, builds a single
:class:`~src.convention_inspector.storage.source_index.SourceIndex` and
runs the :class:`ConventionChecker` over every entity, or only over the
entities declared in a selected set of files (pre-commit style).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from src.convention_inspector.parsers.java_parser import JavaParser, ParsedFile
from src.convention_inspector.services.collaborators import CancellationSignal
from src.convention_inspector.services.convention_checker import ConventionChecker
from src.convention_inspector.services.engine import IdentifierEngine
from src.convention_inspector.storage.source_index import SourceIndex
from src.shared.config import InspectorConfig
from src.shared.errors import ConfigurationError, ParsingError, QueryCancelledError
from src.shared.models.inspection import ProblemInfo, QueryStatus, ScanReport
from src.shared.models.source import SourceEntity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Excluded directories -- never descend into these
# ---------------------------------------------------------------------------
EXCLUDED_DIRS: frozenset[str] = frozenset({
    ".git",
    ".gradle",
    ".idea",
    "build",
    "node_modules",
    "out",
    "target",
})


class ProjectScanner:
    """Parses, indexes and checks a source tree."""

    def __init__(
        self,
        config: InspectorConfig | None = None,
        parser: JavaParser | None = None,
    ) -> None:
        self._config = config if config is not None else InspectorConfig()
        self._parser = parser if parser is not None else JavaParser()

    # -----------------------------------------------------------------------
    # Public interface
    # -----------------------------------------------------------------------

    def discover(self, root: Path) -> list[Path]:
        """Source files under ``root`` matching the configured glob, sorted."""
        files = [
            path for path in root.glob(self._config.source_glob)
            if path.is_file() and not EXCLUDED_DIRS.intersection(path.relative_to(root).parts[:-1])
        ]
        return sorted(files)

    def build_index(self, root: Path | str) -> tuple[SourceIndex, list[str]]:
        """Parse every source file under ``root`` and index them.

        Returns:
            The index and the paths of files that could not be parsed.

        Raises:
            ConfigurationError: If ``root`` is not a directory.
        """
        root = Path(root)
        if not root.is_dir():
            raise ConfigurationError(f"Source root {root} is not a directory")

        parsed: list[ParsedFile] = []
        skipped: list[str] = []
        for path in self.discover(root):
            try:
                parsed.append(self._parser.parse_file(path))
            except ParsingError as exc:
                logger.warning("Skipping %s: %s", path, exc.detail)
                skipped.append(str(path))
        return SourceIndex.build(parsed), skipped

    def scan(
        self,
        root: Path | str,
        only: Iterable[Path | str] | None = None,
        signal: CancellationSignal | None = None,
    ) -> ScanReport:
        """Check every entity under ``root`` (or only those declared in
        ``only``) and collect the problems.

        A cancelled suggestion query stops the scan; the report then has
        status ``cancelled`` and holds the problems found so far.
        """
        root = Path(root)
        index, skipped = self.build_index(root)
        engine = IdentifierEngine.for_index(index, self._config)
        checker = ConventionChecker(engine)

        entities = self._select(index, root, only)
        report = ScanReport(
            root=str(root),
            files_scanned=len(index.files),
            files_skipped=skipped,
        )

        problems: list[ProblemInfo] = []
        for entity in entities:
            if signal is not None and signal.is_cancelled():
                logger.warning("Scan of %s cancelled before %s", root, entity.qualified_name)
                report.status = QueryStatus.CANCELLED
                break
            try:
                problems.extend(checker.inspect_entity(entity, signal))
            except QueryCancelledError as exc:
                logger.warning("Scan of %s cancelled: %s", root, exc.detail)
                report.status = QueryStatus.CANCELLED
                break
            report.entities_checked += 1

        report.problems = problems
        logger.info(
            "Scanned %d files under %s: %d entities, %d problems",
            report.files_scanned, root, report.entities_checked, len(problems),
        )
        return report

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _select(
        index: SourceIndex, root: Path, only: Iterable[Path | str] | None
    ) -> list[SourceEntity]:
        if only is None:
            return index.entities

        wanted: set[Path] = set()
        for item in only:
            path = Path(item)
            if not path.is_absolute() and not path.exists():
                path = root / path
            wanted.add(path.resolve())

        selected: list[SourceEntity] = []
        for parsed in index.files:
            if Path(parsed.file_path).resolve() in wanted:
                selected.extend(index.entities_in_file(parsed.file_path))
        return selected
