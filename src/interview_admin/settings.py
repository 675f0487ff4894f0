"""Runtime settings loaded from the environment with an optional YAML overlay.

The CLI (composition root) calls ``load_settings()`` once and passes the
result into the stores and services it builds. Nothing else reads the
environment directly.

Usage:
    from interview_admin.settings import load_settings

    settings = load_settings()
    db = FirestoreClient.get_client(settings.database_name, settings.credentials_path)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from interview_admin import constants
from interview_admin.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionNames:
    """Firestore collection names for the hierarchical schema."""

    institutions: str = constants.INSTITUTIONS_COLLECTION
    departments: str = constants.DEPARTMENTS_COLLECTION
    department_names: str = constants.DEPARTMENT_NAMES_COLLECTION
    teachers: str = constants.TEACHERS_COLLECTION
    students: str = constants.STUDENTS_COLLECTION
    analyses: str = constants.ANALYSIS_COLLECTION

    @property
    def members(self) -> tuple:
        return (self.teachers, self.students)


@dataclass(frozen=True)
class RetrySettings:
    """Exponential backoff for transient store errors (seconds)."""

    initial: float = constants.DEFAULT_RETRY_INITIAL
    maximum: float = constants.DEFAULT_RETRY_MAXIMUM
    multiplier: float = constants.DEFAULT_RETRY_MULTIPLIER
    deadline: float = constants.DEFAULT_RETRY_DEADLINE


@dataclass(frozen=True)
class AISettings:
    """OpenAI-compatible (LiteLLM proxy) endpoint settings."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: Optional[int] = None
    model: Optional[str] = None
    max_tokens: int = constants.DEFAULT_AI_MAX_TOKENS
    temperature: float = constants.DEFAULT_AI_TEMPERATURE


@dataclass(frozen=True)
class AdminSettings:
    """Everything a command needs to talk to Firestore and the AI proxy."""

    credentials_path: Optional[str] = None
    database_name: str = "(default)"
    top_skill_gaps: int = constants.DEFAULT_TOP_SKILL_GAPS
    collections: CollectionNames = field(default_factory=CollectionNames)
    retry: RetrySettings = field(default_factory=RetrySettings)
    ai: AISettings = field(default_factory=AISettings)


def _read_overlay(path: str) -> Dict[str, Any]:
    """Read the YAML overlay file, failing loudly on unreadable content."""
    overlay_path = Path(path)
    if not overlay_path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(overlay_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _apply_section(base, overrides: Optional[Dict[str, Any]], section: str):
    """Return a copy of a settings dataclass with known keys overridden."""
    if not overrides:
        return base
    if not isinstance(overrides, dict):
        raise ConfigurationError(f"Config section '{section}' must be a mapping")

    known = {f.name for f in fields(base)}
    unknown = set(overrides) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in config section '{section}': {', '.join(sorted(unknown))}"
        )
    return replace(base, **overrides)


def _env_number(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def build_settings(overlay: Optional[Dict[str, Any]] = None) -> AdminSettings:
    """
    Build settings from the current environment plus an optional overlay mapping.

    Environment variables win over the overlay so one-off runs can override a
    checked-in config file.

    Args:
        overlay: Parsed YAML overlay (top-level keys mirror AdminSettings)

    Returns:
        AdminSettings instance
    """
    overlay = dict(overlay or {})

    collections = _apply_section(CollectionNames(), overlay.pop("collections", None), "collections")
    retry = _apply_section(RetrySettings(), overlay.pop("retry", None), "retry")
    ai = _apply_section(AISettings(), overlay.pop("ai", None), "ai")
    settings = _apply_section(AdminSettings(), overlay, "root")

    retry = replace(
        retry,
        initial=_env_number("STORE_RETRY_INITIAL", float, retry.initial),
        maximum=_env_number("STORE_RETRY_MAXIMUM", float, retry.maximum),
        deadline=_env_number("STORE_RETRY_DEADLINE", float, retry.deadline),
    )
    ai = replace(
        ai,
        base_url=os.getenv("LITELLM_BASE_URL") or ai.base_url,
        api_key=os.getenv("LITELLM_MASTER_KEY") or ai.api_key,
        timeout=_env_number("LITELLM_TIMEOUT", int, ai.timeout),
        model=os.getenv("INSIGHTS_MODEL") or ai.model,
    )

    top_skill_gaps = _env_number("TOP_SKILL_GAPS", int, settings.top_skill_gaps)
    if top_skill_gaps <= 0:
        raise ConfigurationError("TOP_SKILL_GAPS must be positive")

    return replace(
        settings,
        credentials_path=os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or settings.credentials_path,
        database_name=os.getenv("FIRESTORE_DATABASE") or settings.database_name,
        top_skill_gaps=top_skill_gaps,
        collections=collections,
        retry=retry,
        ai=ai,
    )


@lru_cache(maxsize=1)
def load_settings(config_path: Optional[str] = None) -> AdminSettings:
    """
    Load settings once per process.

    Loads ``.env`` (if present), then the YAML overlay named by ``config_path``
    or the INTERVIEW_ADMIN_CONFIG environment variable, then the environment.

    Args:
        config_path: Optional YAML overlay path

    Returns:
        AdminSettings instance
    """
    load_dotenv()

    path = config_path or os.getenv("INTERVIEW_ADMIN_CONFIG")
    overlay = _read_overlay(path) if path else None
    settings = build_settings(overlay)

    logger.debug(
        "Loaded settings (database=%s, overlay=%s)", settings.database_name, path or "none"
    )
    return settings


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing or config reload)."""
    load_settings.cache_clear()
