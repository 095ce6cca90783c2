"""Value types passed between the site generator, LLMClient and adapters."""

from dataclasses import dataclass
from typing import Literal

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str


@dataclass(frozen=True)
class LLMUsage:
    # Compatible gateways report some, all or none of these
    prompt_tokens: int | None
    completion_tokens: int | None
    total_tokens: int | None


@dataclass(frozen=True)
class LLMRequest:
    """One completion call.

    `messages` starts with the system turn. None for max_tokens or
    temperature leaves the provider default in place.
    """

    model_name: str
    messages: list[Turn]
    max_tokens: int | None = None
    temperature: float | None = None


@dataclass(frozen=True)
class LLMResponse:
    text: str
    usage: LLMUsage | None
    provider_request_id: str | None
