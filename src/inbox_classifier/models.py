from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Tuple

Category = Literal["important", "promotional", "social", "marketing", "spam", "general"]

CATEGORIES: Tuple[str, ...] = (
    "important",
    "promotional",
    "social",
    "marketing",
    "spam",
    "general",
)


@dataclass(frozen=True)
class Message:
    id: str
    subject: str
    sender: str
    snippet: str
    body: str
    # Raw Date header, never parsed.
    date: str

    @property
    def content(self) -> str:
        """Text sent for classification: the body, or the snippet when the body is empty."""
        return self.body or self.snippet

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ClassificationResult:
    category: Category
    confidence: float
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


FALLBACK_RESULT = ClassificationResult(
    category="general",
    confidence=0.5,
    reasoning="Classification failed, using general as fallback",
)


@dataclass(frozen=True)
class ClassifiedEmail:
    email: Message
    classification: ClassificationResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email.to_dict(),
            "classification": self.classification.to_dict(),
        }
