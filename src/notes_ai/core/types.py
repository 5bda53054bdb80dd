"""core.types

Shared DTOs used throughout *notes_ai*.

These models live in the **core** layer so that *adapters*, *registry*, and
*services* can depend on them without causing circular imports.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Generation options / parameters
# ---------------------------------------------------------------------------


class GenerationOptions(BaseModel):
    """Per-call overrides. Unset fields fall back to the client configuration."""

    max_tokens: int | None = Field(None, ge=1, le=32768, description='Maximum tokens in completion')
    temperature: float | None = Field(None, ge=0.0, le=2.0)
    top_p: float | None = Field(None, ge=0.0, le=1.0)
    top_k: int | None = Field(None, ge=1, le=100)

    model_config = ConfigDict(frozen=True)


class GenerationParams(BaseModel):
    """Fully resolved parameters handed to an adapter."""

    model: str
    max_tokens: int = Field(..., ge=1, le=32768)
    temperature: float = Field(..., ge=0.0, le=2.0)
    top_p: float = Field(..., ge=0.0, le=1.0)
    top_k: int = Field(..., ge=1, le=100)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class TokenUsage(BaseModel):
    """Estimated token counts (not provider-reported)."""

    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GenerationResult(BaseModel):
    text: str
    usage: TokenUsage
    model: str
    finish_reason: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Observability / introspection
# ---------------------------------------------------------------------------


class UsageLogEntry(BaseModel):
    """Cost and outcome of one provider attempt."""

    timestamp: datetime = Field(default_factory=_utcnow)
    model: str
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    latency_ms: int = Field(0, ge=0)
    success: bool
    error: str | None = None

    model_config = ConfigDict(frozen=True)


class ClientStatus(BaseModel):
    initialized: bool
    provider: str
    model: str
    max_tokens: int
    timeout_ms: int

    model_config = ConfigDict(frozen=True)
