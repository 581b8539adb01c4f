from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from platformdirs import user_data_dir
from pydantic import BaseModel, ConfigDict, Field, field_validator

from summarize_repo.config import DEFAULT_RESOLVE_EXTENSIONS, SUFFIX2FORMAT, OutputFormat, parse_output_format

ENV_FILE = find_dotenv(usecwd=True)
if ENV_FILE:
    load_dotenv(ENV_FILE)

APP_NAME = "summarize_repo"
STORE_ENV_VAR = "SUMMARIZE_REPO_STORE"


def default_store_path() -> Path:
    """Location of the persisted summary store.

    ``$SUMMARIZE_REPO_STORE`` wins when set, otherwise the per-user data
    directory is used.

    Returns:
        Path: the JSON file holding saved summaries
    """
    override = os.environ.get(STORE_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path(user_data_dir(APP_NAME, appauthor=False)) / "summaries.json"


class ExportConfig(BaseModel):
    """Options controlling one export document. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)

    output_format: OutputFormat = Field(default=OutputFormat.MARKDOWN, description="Document format.")
    show_hidden_files: bool = Field(default=False, description="List dot-files in the tree.")
    include_images: bool = Field(default=True, description="Keep image files in the export.")
    strip_comments: bool = Field(default=False, description="Strip comments from every file.")
    include_summaries: bool = Field(default=True, description="Append included saved summaries.")


class Settings(BaseModel):
    """Configuration settings for the summarize_repo command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    command: str = Field(default="summarize", description="Sub-command to run.")
    root: Path = Field(default_factory=Path.cwd, description="Project root directory.")
    store_path: Path = Field(default_factory=default_store_path, description="Saved summaries file.")
    output: Path | None = Field(default=None, description="Export file (.md, .html, .txt or .json).")
    format: str = Field(default="", description="Force format.")
    selected: list[Path] = Field(default_factory=list, description="Selected files or folders.")
    comment: str = Field(default="", description="Additional comments appended to a summary.")
    save: bool = Field(default=True, description="Persist generated summaries.")
    log_file: str = Field(default="", description="Log file path.")
    toggle: str = Field(default="", description="Saved summary (path or id) whose inclusion is flipped.")
    remove: str = Field(default="", description="Saved summary (path or id) to delete.")

    show_hidden: bool = Field(default=False, description="Show hidden files.")
    include_images: bool = Field(default=True, description="Include image files in exports.")
    strip_comments: bool = Field(default=False, description="Strip comments in exports.")
    include_summaries: bool = Field(default=True, description="Include saved summaries in exports.")

    resolve_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RESOLVE_EXTENSIONS),
        description="Candidate extensions tried, in order, for relative imports.",
    )
    max_analysis_bytes: int = Field(
        default=1_000_000,
        ge=1,
        description="Files above are analyzed on their head only.",
    )

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value: str | None) -> str:
        normalized = (value or "").strip()
        if normalized:
            parse_output_format(normalized)
        return normalized

    @classmethod
    def from_yaml(cls, path: Path, **overrides: Any) -> Settings:  # noqa: ANN401
        """Build settings from a YAML mapping, letting ``overrides`` win.

        Args:
            path (Path): YAML file whose top level maps field names to values
            **overrides: explicit values (typically CLI flags)

        Raises:
            ValueError: if the document is not a mapping

        Returns:
            Settings: the merged settings
        """
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            msg = f"{path} must contain a mapping of settings"
            raise ValueError(msg)  # noqa: TRY004
        return cls(**{**data, **overrides})

    def output_format(self) -> OutputFormat:
        """Resolve the export format from ``format`` then from the output suffix."""
        if self.format:
            return parse_output_format(self.format)
        if self.output is not None:
            return SUFFIX2FORMAT.get(self.output.suffix.lower(), OutputFormat.MARKDOWN)
        return OutputFormat.MARKDOWN

    def export_config(self) -> ExportConfig:
        """Derive the export value object from these settings."""
        return ExportConfig(
            output_format=self.output_format(),
            show_hidden_files=self.show_hidden,
            include_images=self.include_images,
            strip_comments=self.strip_comments,
            include_summaries=self.include_summaries,
        )
