from __future__ import annotations

import json
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from summarize_repo.exceptions import StoreCorruptedError
from summarize_repo.file_manipulation import canonical_key
from summarize_repo.imports_index import ImportExportIndex
from summarize_repo.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

SAVED_SUMMARIES_KEY = "savedSummaries"


def _now() -> datetime:
    return datetime.now(UTC)


class SavedSummary(BaseModel):
    """A generated report kept for later export.

    ``file_name`` holds the canonical key of the summarized file or folder
    (its absolute resolved path). Serialized with camelCase names
    (``fileName``, ``isIncluded``).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    file_name: str = Field(alias="fileName")
    content: str
    timestamp: datetime = Field(default_factory=_now)
    is_included: bool = Field(default=True, alias="isIncluded")

    @property
    def display_name(self) -> str:
        return Path(self.file_name).name or self.file_name


class JsonKeyValueStore:
    """A JSON object persisted in one file, read and written whole.

    A missing file reads as an empty mapping; a file that does not decode to a
    JSON object raises :class:`StoreCorruptedError`.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StoreCorruptedError(path=self.path) from e
        if not isinstance(data, dict):
            raise StoreCorruptedError(path=self.path)
        return data

    def get(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:  # noqa: ANN401
        data = self.load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        tmp.replace(self.path)


class AnalysisStore:
    """Saved summaries and the import/export index of one open project.

    Every public method holds the store lock, so the store can be shared
    between the caller and a background :class:`~summarize_repo.tasks.AnalysisRunner`.
    When constructed with a ``path``, mutations are persisted immediately.
    """

    def __init__(self, path: Path | None = None, *, index: ImportExportIndex | None = None) -> None:
        self.lock = threading.RLock()
        self.path = path
        self.index = index if index is not None else ImportExportIndex()
        self._kv = JsonKeyValueStore(path) if path is not None else None
        self._summaries: list[SavedSummary] = []

    def load(self) -> list[SavedSummary]:
        """Read saved summaries from disk, replacing those in memory.

        Raises:
            StoreCorruptedError: if the file or one of its records cannot be decoded
        """
        with self.lock:
            if self._kv is None:
                return list(self._summaries)
            raw = self._kv.get(SAVED_SUMMARIES_KEY, [])
            if not isinstance(raw, list):
                raise StoreCorruptedError(path=self._kv.path)
            try:
                self._summaries = [SavedSummary.model_validate(item) for item in raw]
            except ValidationError as e:
                raise StoreCorruptedError(path=self._kv.path) from e
            logger.info("Loaded %d saved summaries from %s", len(self._summaries), self._kv.path)
            return list(self._summaries)

    def persist(self) -> None:
        with self.lock:
            if self._kv is None:
                return
            self._kv.set(
                SAVED_SUMMARIES_KEY,
                [s.model_dump(mode="json", by_alias=True) for s in self._summaries],
            )
            logger.info("Persisted %d saved summaries to %s", len(self._summaries), self._kv.path)

    def _position(self, key_or_id: str | Path) -> int | None:
        raw = str(key_or_id)
        key = canonical_key(key_or_id)
        for i, s in enumerate(self._summaries):
            if s.id == raw or s.file_name in (raw, key):
                return i
        return None

    def save_summary(self, key: str | Path, content: str, *, timestamp: datetime | None = None) -> SavedSummary:
        """Save ``content`` as the current summary of ``key``.

        An existing summary for the same key is replaced in place (same
        position in the list, fresh id and timestamp, inclusion reset).

        Args:
            key (str | Path): path of the summarized file or folder
            content (str): the rendered report
            timestamp (datetime | None): save time, now when omitted

        Returns:
            SavedSummary: the stored record
        """
        summary = SavedSummary(file_name=canonical_key(key), content=content, timestamp=timestamp or _now())
        with self.lock:
            pos = self._position(summary.file_name)
            if pos is None:
                self._summaries.append(summary)
                logger.info("Saved summary for %s", summary.file_name)
            else:
                self._summaries[pos] = summary
                logger.info("Replaced summary for %s", summary.file_name)
            self.persist()
        return summary

    def get_summary(self, key_or_id: str | Path) -> SavedSummary | None:
        with self.lock:
            pos = self._position(key_or_id)
            return None if pos is None else self._summaries[pos]

    def set_included(self, key_or_id: str | Path, included: bool) -> SavedSummary:  # noqa: FBT001
        """Set whether a saved summary goes into exports.

        Raises:
            KeyError: if no summary matches ``key_or_id``
        """
        with self.lock:
            pos = self._position(key_or_id)
            if pos is None:
                msg = f"No saved summary for {key_or_id}"
                raise KeyError(msg)
            updated = self._summaries[pos].model_copy(update={"is_included": included})
            self._summaries[pos] = updated
            self.persist()
            return updated

    def toggle_summary(self, key_or_id: str | Path) -> SavedSummary:
        with self.lock:
            current = self.get_summary(key_or_id)
            if current is None:
                msg = f"No saved summary for {key_or_id}"
                raise KeyError(msg)
            return self.set_included(current.id, not current.is_included)

    def remove_summary(self, key_or_id: str | Path) -> bool:
        """Delete a saved summary. Returns whether one was removed."""
        with self.lock:
            pos = self._position(key_or_id)
            if pos is None:
                return False
            removed = self._summaries.pop(pos)
            logger.info("Removed summary for %s", removed.file_name)
            self.persist()
            return True

    @property
    def summaries(self) -> list[SavedSummary]:
        with self.lock:
            return list(self._summaries)

    def included_summaries(self) -> list[SavedSummary]:
        """Summaries flagged for export, in stored order."""
        with self.lock:
            return [s for s in self._summaries if s.is_included]

    def replace_all(self, summaries: Sequence[SavedSummary]) -> None:
        with self.lock:
            self._summaries = list(summaries)
            self.persist()
