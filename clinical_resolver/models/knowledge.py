# clinical_resolver/models/knowledge.py
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Order in which matched fields are reported on a SearchResult.
FIELD_ORDER = ("title", "content", "diagnosis", "symptoms", "techniques", "tags")


def clamp_unit(value: float) -> float:
    """Clamp a score or confidence value to [0, 1]."""
    return max(0.0, min(1.0, float(value)))


class KnowledgeEntry(BaseModel):
    """A locally stored clinical fact record. Read-only to the resolver."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content: str = ""
    diagnosis: Optional[str] = None
    symptoms: List[str] = Field(default_factory=list)
    techniques: List[str] = Field(default_factory=list)
    precautions: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    specialty: Optional[str] = None
    confidence: float = 1.0

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value):
        return clamp_unit(value)


@dataclass(frozen=True)
class SearchQuery:
    """Ranking request built per call."""

    text: str
    category: Optional[str] = None
    specialty: Optional[str] = None
    limit: int = 10


@dataclass(frozen=True)
class SearchResult:
    """A scored knowledge entry."""

    entry: KnowledgeEntry
    score: float
    highlights: List[str] = field(default_factory=list)
    matched_fields: List[str] = field(default_factory=list)

    def __post_init__(self):
        object.__setattr__(self, "score", clamp_unit(self.score))
