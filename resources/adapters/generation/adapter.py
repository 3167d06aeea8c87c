"""Transport-agnostic generation adapter contract and DTOs."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict


class GenerationError(Exception):
    """Base exception for generation adapter failures."""


class GenerationTimeoutError(GenerationError):
    """The upstream did not answer within the adapter timeout."""


class GenerationRejectedError(GenerationError):
    """The upstream refused the request (4xx, blocked or invalid prompt)."""


class GenerationUnavailableError(GenerationError):
    """The upstream is unreachable, failing, or returned no usable content."""


class GenerationResult(BaseModel):
    """Adapter response payload for one generation call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str
    model: str
    latency_ms: int


class GenerationModelInfo(BaseModel):
    """Static description of the configured generation model."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    model: str
    provider: str
    temperature: float
    top_k: int
    top_p: float
    max_output_tokens: int
    timeout_seconds: float


class GenerationHealthResult(BaseModel):
    """Adapter readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    adapter_ready: bool
    detail: str


class GenerationAdapter(Protocol):
    """Protocol for the external text generation collaborator."""

    async def generate(self, *, prompt: str) -> GenerationResult:
        """Generate text for one prompt; raises ``GenerationError`` subclasses."""

    def model_info(self) -> GenerationModelInfo:
        """Describe the configured model and its parameters."""

    async def health(self) -> GenerationHealthResult:
        """Return adapter readiness without spending a billable call."""

    async def aclose(self) -> None:
        """Release HTTP resources."""
