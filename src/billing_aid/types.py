"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class Category(str, Enum):
    """Kinds of identifiable information, in redaction priority order."""
    NAMES = "names"
    EMAILS = "emails"
    PHONES = "phones"
    SSN = "ssn"
    CREDIT_CARDS = "creditCards"
    ADDRESSES = "addresses"
    CASE_NUMBERS = "caseNumbers"
    DATES = "dates"
    COMPANIES = "companies"

    @classmethod
    def lookup(cls, key: str) -> Category | None:
        """Resolve "creditCards", "credit_cards" or "anonymizeCreditCards"."""
        norm = key.replace("_", "").replace("-", "").lower()
        if norm.startswith("anonymize"):
            norm = norm[len("anonymize"):]
        for cat in cls:
            if cat.value.lower() == norm:
                return cat
        return None


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    WARNING = "warning"


# ── Flagged words ────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class FlagPosition:
    """One occurrence of a flagged term, offsets into the scanned text."""
    start: int
    end: int
    matched_text: str      # original casing

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "matchedText": self.matched_text}


@dataclass(slots=True)
class WordFlag:
    """A flagged term found in text, with every place it occurs."""
    word: str
    severity: Severity
    reason: str
    alternatives: list[str] = field(default_factory=list)
    positions: list[FlagPosition] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.positions)

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "count": self.count,
            "positions": [p.to_dict() for p in self.positions],
            "severity": self.severity.value,
            "reason": self.reason,
            "alternatives": list(self.alternatives),
        }


# ── Templates ────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class TemplateItem:
    """A canned billing-task description with its time estimate (hours)."""
    time_estimate: float
    description: str

    def __post_init__(self) -> None:
        if not self.time_estimate > 0:
            raise ValueError(f"time estimate must be positive, got {self.time_estimate!r}")
        if not self.description or not self.description.strip():
            raise ValueError("template item needs a description")

    def to_dict(self) -> dict:
        return {"timeEstimate": self.time_estimate, "description": self.description}


@dataclass(frozen=True, slots=True)
class TemplateGroup:
    id: str
    name: str
    description: str
    category: str
    items: tuple[TemplateItem, ...] = ()

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "templateCount": len(self.items),
        }

    def to_dict(self) -> dict:
        return {**self.summary(), "templates": [i.to_dict() for i in self.items]}


@dataclass(frozen=True, slots=True)
class ScoredTemplate:
    item: TemplateItem
    score: int

    def to_dict(self) -> dict:
        return {**self.item.to_dict(), "relevanceScore": self.score}


@dataclass(slots=True)
class TemplateSuggestion:
    """A template group ranked against a user's task description."""
    group: TemplateGroup
    relevance_score: int
    matching_templates: list[ScoredTemplate] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.group.id,
            "name": self.group.name,
            "description": self.group.description,
            "category": self.group.category,
            "relevanceScore": self.relevance_score,
            "matchingTemplates": [t.to_dict() for t in self.matching_templates],
        }


# ── Anonymization ────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class EntityMatch:
    """A single entity reported by the NER layer."""
    entity_type: str       # e.g. "PERSON", "ORGANIZATION"
    start: int
    end: int
    text: str
    score: float           # 0.0–1.0 confidence
    source: str = "presidio"


@dataclass(frozen=True, slots=True)
class Replacement:
    """Audit record for one substitution.

    ``position`` is the token's offset in the running text right after
    the substitution was made.
    """
    category: Category
    original_text: str
    replacement_token: str
    position: int
    source: str = "regex"  # "regex" | "presidio"

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "originalText": self.original_text,
            "replacementToken": self.replacement_token,
            "position": self.position,
            "source": self.source,
        }


@dataclass(slots=True)
class AnonymizationResult:
    """Result of anonymizing a piece of text."""
    text: str                                          # redacted text with tokens
    replacements: list[Replacement] = field(default_factory=list)

    @property
    def was_modified(self) -> bool:
        return bool(self.replacements)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "replacements": [r.to_dict() for r in self.replacements],
            "wasModified": self.was_modified,
        }


@dataclass(slots=True)
class Detection:
    detected_types: list[Category] = field(default_factory=list)

    @property
    def has_identifiable_info(self) -> bool:
        return bool(self.detected_types)

    @property
    def count(self) -> int:
        return len(self.detected_types)

    def to_dict(self) -> dict:
        return {
            "hasIdentifiableInfo": self.has_identifiable_info,
            "detectedTypes": [c.value for c in self.detected_types],
            "count": self.count,
        }


@dataclass(frozen=True, slots=True)
class AnonymizationSuggestion:
    category: Category
    description: str
    replacement_token: str
    severity: Severity

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "description": self.description,
            "replacementToken": self.replacement_token,
            "severity": self.severity.value,
        }
