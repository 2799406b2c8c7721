"""Response model for resolver output."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from clinical_resolver.models.knowledge import clamp_unit


class ResponseSource(str, Enum):
    """Tier that produced a response."""

    KNOWLEDGE_BASE = "knowledge_base"
    CACHE = "cache"
    PREMIUM_AI = "premium_ai"


@dataclass(frozen=True)
class AIResponse:
    """Structured answer with provenance and confidence."""

    text: str
    source: ResponseSource
    confidence: float
    references: list[str] = field(default_factory=list)
    cost: float | None = None
    provider: str | None = None
    response_time: float = 0.0  # milliseconds

    def __post_init__(self):
        object.__setattr__(self, "confidence", clamp_unit(self.confidence))

    def with_updates(self, **changes: Any) -> "AIResponse":
        """Return a copy with the given fields replaced.

        Returns:
            New AIResponse
        """
        return replace(self, **changes)

    def is_premium(self) -> bool:
        """Check if the response was paid for.

        Returns:
            True if produced by a premium provider
        """
        return self.source == ResponseSource.PREMIUM_AI

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for caching and serialization.

        Returns:
            Dict representation
        """
        return {
            "text": self.text,
            "source": self.source.value,
            "confidence": self.confidence,
            "references": list(self.references),
            "cost": self.cost,
            "provider": self.provider,
            "response_time": self.response_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AIResponse":
        """Rebuild a response from its dictionary form.

        Args:
            data: Output of ``to_dict``

        Returns:
            AIResponse instance
        """
        return cls(
            text=data["text"],
            source=ResponseSource(data.get("source", ResponseSource.CACHE.value)),
            confidence=data.get("confidence", 0.0),
            references=list(data.get("references") or []),
            cost=data.get("cost"),
            provider=data.get("provider"),
            response_time=data.get("response_time", 0.0),
        )
