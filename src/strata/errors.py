"""Exception taxonomy for indexing and querying.

Only ProjectNotFoundError, AlreadyIndexingError and StrategyQueryError escape
the public entry points. The others are raised and caught inside a single
unit of work (one document, one chunk, one summary) and end up logged or
recorded in the manifest.
"""

from __future__ import annotations


class StrataError(Exception):
    """Base class for every error raised by strata."""


class ProjectNotFoundError(StrataError):
    """The project directory does not exist under the workspace root."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class AlreadyIndexingError(StrataError):
    """An index run for the project is already in flight in this process."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Indexing already in progress for project: {project_id}")
        self.project_id = project_id


class DocumentIndexError(StrataError):
    """Chunking or embedding failed for a single document."""

    def __init__(self, relative_path: str, message: str) -> None:
        super().__init__(f"{relative_path}: {message}")
        self.relative_path = relative_path


class PreprocessingError(StrataError):
    """The shared per-chunk LLM call failed."""


class SummaryGenerationError(StrataError):
    """A document or collection summary could not be generated."""


class ManifestLoadError(StrataError):
    """The manifest file exists but could not be read or parsed."""


class StrategyConfigError(StrataError):
    """A strategy id is unknown or its dependencies are missing."""


class StrategyQueryError(StrataError):
    """One strategy's query path failed; the whole multi-strategy query fails."""

    def __init__(self, strategy_id: str, cause: BaseException) -> None:
        super().__init__(f"Strategy '{strategy_id}' query failed: {cause}")
        self.strategy_id = strategy_id


class ProjectExistsError(StrataError):
    """A project with this id already has a manifest."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project already exists: {project_id}")
        self.project_id = project_id
