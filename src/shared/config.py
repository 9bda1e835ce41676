"""Unified configuration loaded from .seoforge.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".seoforge.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "seoforge" / "config.toml"
DRAFTS_ROOT_NAME = "drafts"


class OnThresholdFailure(StrEnum):
    """What the controller does when regeneration never reaches the threshold."""

    RETURN_BEST_EFFORT = "return-best-effort"
    FAIL = "fail"


class ContentRootConfig(BaseModel):
    """One physical content tree scanned during registry sync."""

    name: str
    directory: str


class PathsConfig(BaseModel):
    """[paths] section."""

    content_roots: list[ContentRootConfig] = Field(
        default_factory=lambda: [
            ContentRootConfig(name="site", directory="./site/content/blog"),
            ContentRootConfig(name="seo", directory="./content/blog"),
        ]
    )
    drafts_dir: str = "./content/drafts"
    state_dir: str = "./data"
    calendar_file: str = "./config/content-calendar.json"

    def root_paths(self) -> list[tuple[str, Path]]:
        return [(root.name, Path(root.directory)) for root in self.content_roots]

    def sync_roots(self) -> list[tuple[str, Path]]:
        """Content roots, then the drafts directory with the lowest precedence."""
        return [*self.root_paths(), (DRAFTS_ROOT_NAME, Path(self.drafts_dir))]


class GenerationSectionConfig(BaseModel):
    """[generation] section."""

    min_differentiation: float = 0.75
    max_similarity: float = 0.3
    min_data_points: int = 3
    max_regenerations: int = 2
    min_content_chars: int = 500
    on_threshold_failure: OnThresholdFailure = OnThresholdFailure.RETURN_BEST_EFFORT
    refresh_data_points: bool = False


class LLMSectionConfig(BaseModel):
    """[llm] section."""

    backend: str = "anthropic"
    model: str | None = None
    timeout: int = 600
    ollama_url: str = "http://localhost:11434"
    temperature: float = 0.7
    max_tokens: int = 8000


class RegistrySectionConfig(BaseModel):
    """[registry] section."""

    content_marker: str = "geographic-farming"
    snapshot_file: str = "blog-registry.json"


class PhotosSectionConfig(BaseModel):
    """[photos] section."""

    unsplash_access_key: str = ""
    search_timeout: int = 15
    probe_timeout: int = 10
    max_keywords: int = 5

    @property
    def search_enabled(self) -> bool:
        return bool(self.unsplash_access_key)


class BatchSectionConfig(BaseModel):
    """[batch] section."""

    max_items_per_run: int = 5
    delay_seconds: float = 5.0
    auto_publish_threshold: float = 0.85
    require_review: bool = True


class SeoforgeConfig(BaseModel):
    """Top-level configuration model for the whole pipeline."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    generation: GenerationSectionConfig = Field(default_factory=GenerationSectionConfig)
    llm: LLMSectionConfig = Field(default_factory=LLMSectionConfig)
    registry: RegistrySectionConfig = Field(default_factory=RegistrySectionConfig)
    photos: PhotosSectionConfig = Field(default_factory=PhotosSectionConfig)
    batch: BatchSectionConfig = Field(default_factory=BatchSectionConfig)

    @property
    def state_dir(self) -> Path:
        return Path(self.paths.state_dir)

    @property
    def snapshot_path(self) -> Path:
        return self.state_dir / self.registry.snapshot_file


def load_config(path: str | Path | None = None) -> SeoforgeConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .seoforge.toml in CWD
    3. ~/.config/seoforge/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged SeoforgeConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = SeoforgeConfig.model_validate(data) if data else SeoforgeConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: SeoforgeConfig, **cli_kwargs: object) -> SeoforgeConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "backend": ("llm", "backend"),
        "model": ("llm", "model"),
        "timeout": ("llm", "timeout"),
        "state_dir": ("paths", "state_dir"),
        "drafts_dir": ("paths", "drafts_dir"),
        "calendar_file": ("paths", "calendar_file"),
        "max_regenerations": ("generation", "max_regenerations"),
        "on_threshold_failure": ("generation", "on_threshold_failure"),
        "max_items": ("batch", "max_items_per_run"),
        "delay": ("batch", "delay_seconds"),
        "auto_publish_threshold": ("batch", "auto_publish_threshold"),
        "require_review": ("batch", "require_review"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return SeoforgeConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: SeoforgeConfig) -> SeoforgeConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "SEOFORGE_LLM_BACKEND": ("llm", "backend"),
        "SEOFORGE_MODEL": ("llm", "model"),
        "OLLAMA_URL": ("llm", "ollama_url"),
        "UNSPLASH_ACCESS_KEY": ("photos", "unsplash_access_key"),
        "SEOFORGE_STATE_DIR": ("paths", "state_dir"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    # OLLAMA_MODEL only applies when the local backend is selected
    ollama_model = os.environ.get("OLLAMA_MODEL")
    if ollama_model and data["llm"]["backend"] == "ollama" and not data["llm"]["model"]:
        data["llm"]["model"] = ollama_model

    return SeoforgeConfig.model_validate(data)
