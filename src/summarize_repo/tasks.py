from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, TypeVar

from summarize_repo.logging import logger
from summarize_repo.output_construction import assemble
from summarize_repo.summary import generate_summary

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path
    from types import TracebackType

    from summarize_repo.file_tree import FileNode
    from summarize_repo.settings import ExportConfig
    from summarize_repo.store import AnalysisStore
    from summarize_repo.summary import GeneratedSummary

T = TypeVar("T")


class AnalysisRunner:
    """Run summary generation and export assembly off the calling thread.

    Work is queued on a single worker so that two actions never run at the
    same time. Each submission returns a :class:`~concurrent.futures.Future`;
    an optional callback receives that future once it is done (exactly once,
    whether it succeeded or failed). Errors are logged and re-raised from
    ``Future.result()``.
    """

    def __init__(
        self,
        store: AnalysisStore,
        *,
        project_root: Path | None = None,
        max_analysis_bytes: int | None = None,
    ) -> None:
        self.store = store
        self.project_root = project_root
        self.max_analysis_bytes = max_analysis_bytes
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="summarize-repo-analysis")

    def _submit(self, fn: Callable[[], T], callback: Callable[[Future[T]], Any] | None) -> Future[T]:
        def run() -> T:
            try:
                return fn()
            except Exception:
                logger.exception("Background task failed")
                raise

        future = self._executor.submit(run)
        if callback is not None:
            future.add_done_callback(callback)
        return future

    def submit_summary(
        self,
        selection: Sequence[FileNode],
        additional_comments: str = "",
        *,
        save: bool = True,
        callback: Callable[[Future[list[GeneratedSummary]]], Any] | None = None,
    ) -> Future[list[GeneratedSummary]]:
        """Queue :func:`~summarize_repo.summary.generate_summary` for ``selection``."""
        nodes = list(selection)
        return self._submit(
            lambda: generate_summary(
                nodes,
                self.store,
                additional_comments,
                save=save,
                project_root=self.project_root,
                max_analysis_bytes=self.max_analysis_bytes,
            ),
            callback,
        )

    def submit_export(
        self,
        selection: Sequence[FileNode],
        config: ExportConfig,
        *,
        callback: Callable[[Future[str]], Any] | None = None,
    ) -> Future[str]:
        """Queue :func:`~summarize_repo.output_construction.assemble` with the store's summaries."""
        nodes = list(selection)
        return self._submit(lambda: assemble(nodes, self.store.summaries, config), callback)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> AnalysisRunner:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()
