"""core.config

Gemini client settings, read once from the environment and frozen.

Environment variables (all optional except ``GEMINI_API_KEY``)::

    GEMINI_API_KEY      required
    GEMINI_MODEL        gemini-2.0-flash-001
    GEMINI_MAX_TOKENS   8192    (1-32768)
    GEMINI_TIMEOUT_MS   10000   (1-60000)
    GEMINI_DEBUG        false
    GEMINI_RATE_LIMIT   60      (> 0, requests per minute)
    GEMINI_TEMPERATURE  0.7     (0-2)
    GEMINI_TOP_P        0.8     (0-1)
    GEMINI_TOP_K        40      (1-100)
    APP_ENV             development | test | production
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from notes_ai.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

# env var -> model field
_ENV_FIELDS: Mapping[str, str] = {
    'GEMINI_API_KEY': 'api_key',
    'GEMINI_MODEL': 'model',
    'GEMINI_MAX_TOKENS': 'max_tokens',
    'GEMINI_TIMEOUT_MS': 'timeout_ms',
    'GEMINI_DEBUG': 'debug',
    'GEMINI_RATE_LIMIT': 'rate_limit_per_minute',
    'GEMINI_TEMPERATURE': 'temperature',
    'GEMINI_TOP_P': 'top_p',
    'GEMINI_TOP_K': 'top_k',
}

_ENVIRONMENT_OVERRIDES: Mapping[str, Mapping[str, Any]] = {
    'development': {'debug': True, 'timeout_ms': 30_000, 'rate_limit_per_minute': 30},
    'test': {'debug': False, 'timeout_ms': 5_000, 'rate_limit_per_minute': 10},
    'production': {'debug': False, 'timeout_ms': 10_000, 'rate_limit_per_minute': 60},
}


class GeminiConfig(BaseModel):
    """Immutable client configuration."""

    api_key: str = Field(..., min_length=1, repr=False)
    model: str = Field('gemini-2.0-flash-001', min_length=1)
    max_tokens: int = Field(8192, ge=1, le=32768)
    timeout_ms: int = Field(10_000, ge=1, le=60_000)
    debug: bool = False
    rate_limit_per_minute: int = Field(60, gt=0)
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    top_p: float = Field(0.8, ge=0.0, le=1.0)
    top_k: int = Field(40, ge=1, le=100)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator('debug', mode='before')
    @classmethod
    def _parse_debug(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() == 'true'
        return bool(v)

    # --------------------------- Constructors -------------------------

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        environment: str | None = None,
    ) -> GeminiConfig:
        """Build a config from *environ* (default: ``os.environ`` plus ``.env``).

        *environment* selects a profile of overrides (see
        `environment_overrides`); it defaults to ``APP_ENV``. Variables set
        explicitly in *environ* take precedence over the profile.

        Raises
        ------
        ConfigurationError
            If ``GEMINI_API_KEY`` is missing or any value is out of range.

        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        if not environ.get('GEMINI_API_KEY'):
            raise ConfigurationError('GEMINI_API_KEY environment variable is not set')

        profile = environment if environment is not None else environ.get('APP_ENV', '')
        values: dict[str, Any] = dict(environment_overrides(profile))
        values.update({field: environ[name] for name, field in _ENV_FIELDS.items() if environ.get(name)})

        return cls.from_mapping(values)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> GeminiConfig:
        """Validate *values*, converting pydantic errors to `ConfigurationError`."""
        try:
            return cls.model_validate(dict(values))
        except ValidationError as exc:
            problems = '; '.join(f'{".".join(map(str, err["loc"]))}: {err["msg"]}' for err in exc.errors())
            raise ConfigurationError(f'Invalid Gemini configuration: {problems}') from exc


def environment_overrides(environment: str | None) -> Mapping[str, Any]:
    """Return the per-environment setting overrides (empty for unknown names)."""
    return _ENVIRONMENT_OVERRIDES.get((environment or '').lower(), {})
