"""Persistence of scan results for cross-scan comparison."""

from open_tasks.persistence.results_store import (
    ResultsLoadError,
    load_project,
    load_result,
    save_result,
)

__all__ = ["ResultsLoadError", "load_project", "load_result", "save_result"]
