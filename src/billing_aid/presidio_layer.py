"""Optional NER layer: Presidio entities mapped onto redaction categories.

Catches names and organizations the capitalization regexes miss
(lowercase names, single-word surnames, unusual company suffixes).
Uses spaCy under the hood; only imported when ``use_presidio`` is set.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .types import Category, EntityMatch

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

# Lazy singleton, don't load spaCy until first use
_engine: AnalyzerEngine | None = None
_engine_lang: str = ""


def _get_engine(language: str = "en") -> AnalyzerEngine:
    """Lazy-init the Presidio analyzer engine."""
    global _engine, _engine_lang
    if _engine is None or _engine_lang != language:
        from presidio_analyzer import AnalyzerEngine
        from presidio_analyzer.nlp_engine import NlpEngineProvider

        provider = NlpEngineProvider(nlp_configuration={
            "nlp_engine_name": "spacy",
            "models": [{"lang_code": language, "model_name": f"{language}_core_web_sm"}],
        })
        nlp_engine = provider.create_engine()
        _engine = AnalyzerEngine(nlp_engine=nlp_engine, supported_languages=[language])
        _engine_lang = language
    return _engine


ENTITY_CATEGORIES: dict[str, Category] = {
    "PERSON": Category.NAMES,
    "ORGANIZATION": Category.COMPANIES,
    "ORG": Category.COMPANIES,
    "LOCATION": Category.ADDRESSES,
    "DATE_TIME": Category.DATES,
    "EMAIL_ADDRESS": Category.EMAILS,
    "PHONE_NUMBER": Category.PHONES,
    "US_SSN": Category.SSN,
    "CREDIT_CARD": Category.CREDIT_CARDS,
}

DEFAULT_ENTITIES = ["PERSON", "ORGANIZATION", "LOCATION"]


def scan_presidio(
    text: str,
    *,
    language: str = "en",
    entities: list[str] | None = None,
    score_threshold: float = 0.35,
    exclude_spans: list[tuple[int, int]] | None = None,
) -> list[EntityMatch]:
    """Run Presidio analysis on text.

    Args:
        text: Input text to scan.
        language: ISO language code.
        entities: Entity types to detect (None = DEFAULT_ENTITIES).
        score_threshold: Minimum confidence score.
        exclude_spans: Spans already redacted; overlapping entities are skipped.
    """
    engine = _get_engine(language)
    results = engine.analyze(
        text=text,
        language=language,
        entities=entities or DEFAULT_ENTITIES,
        score_threshold=score_threshold,
    )

    exclude = exclude_spans or []
    matches: list[EntityMatch] = []
    for r in results:
        if r.entity_type not in ENTITY_CATEGORIES:
            continue
        if any(r.start < e and r.end > s for s, e in exclude):
            continue
        matches.append(EntityMatch(
            entity_type=r.entity_type,
            start=r.start,
            end=r.end,
            text=text[r.start:r.end],
            score=r.score,
        ))

    return sorted(matches, key=lambda m: m.start)
