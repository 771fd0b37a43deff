"""Anonymizer: redacts identifiable information from generated billing text.

Usage:
    from billing_aid import Anonymizer

    anonymizer = Anonymizer()    # reusable, safe to share between requests

    result = anonymizer.anonymize("Call John Smith at 555-123-4567")
    print(result.text)           # "Call [CLIENT NAME] at [PHONE NUMBER]"
    print(result.replacements)   # audit trail, one record per substitution

Layer 1 runs the category regexes in priority order against the running
text, so a span claimed by an earlier category is no longer visible to
later ones.  Layer 2 (optional) hands what is left to Presidio NER.
"""

from __future__ import annotations
import dataclasses
import logging
import re
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .patterns import DEFAULT_RULES, AnonymizationRule, compile_detector, detect_categories
from .types import (
    AnonymizationResult,
    AnonymizationSuggestion,
    Category,
    Detection,
    EntityMatch,
    Replacement,
)

logger = logging.getLogger(__name__)


@dataclass
class AnonymizerConfig:
    """Configuration for the Anonymizer."""
    # Categories disabled unless a call's options turn them back on
    skip_categories: set[Category] = field(default_factory=set)
    # Allow-list: values that should NEVER be redacted
    allow_list: set[str] = field(default_factory=set)
    use_presidio: bool = False        # enable Layer 2 (NER)
    language: str = "en"
    score_threshold: float = 0.35     # minimum confidence for Presidio
    presidio_entities: list[str] | None = None  # None = defaults


class Anonymizer:
    """Regex redaction with an optional NER pass.

    Rules are owned by the instance.  ``add_pattern``/``remove_pattern``
    swap in a new rules tuple under a lock; readers work on whichever
    tuple they picked up when the call started.
    """

    def __init__(
        self,
        config: AnonymizerConfig | None = None,
        rules: tuple[AnonymizationRule, ...] = DEFAULT_RULES,
    ) -> None:
        self.config = config or AnonymizerConfig()
        self._rules = tuple(rules)
        self._lock = threading.Lock()

    @property
    def rules(self) -> tuple[AnonymizationRule, ...]:
        return self._rules

    def rule_for(self, category: Category) -> AnonymizationRule | None:
        for rule in self._rules:
            if rule.category is category:
                return rule
        return None

    def enabled_categories(self, options: Mapping[str, Any] | None = None) -> set[Category]:
        """Categories active for a call: config skips first, then per-call flags."""
        enabled = {rule.category for rule in self._rules} - set(self.config.skip_categories)
        if not isinstance(options, Mapping):
            return enabled
        for key, value in options.items():
            if isinstance(key, Category):
                category = key
            elif isinstance(key, str):
                category = Category.lookup(key)
            else:
                category = None
            if category is None:
                continue
            if value is False:
                enabled.discard(category)
            elif value is True:
                enabled.add(category)
        return enabled

    def anonymize(self, text: str, options: Mapping[str, Any] | None = None) -> AnonymizationResult:
        """Redact every enabled category from text.

        Each regex hit replaces the first remaining occurrence of the
        matched substring in the running text.  Hits already consumed by
        an earlier substitution are dropped without a record.
        """
        if not isinstance(text, str) or not text:
            return AnonymizationResult(text="")

        rules = self._rules
        enabled = self.enabled_categories(options)
        allow = self.config.allow_list
        replacements: list[Replacement] = []
        result = text

        # --- Layer 1: Regex, in category priority order ---
        for rule in rules:
            if rule.category not in enabled:
                continue
            for pattern in rule.detectors:
                for original in [m.group() for m in pattern.finditer(result)]:
                    if not original or original in allow:
                        continue
                    idx = result.find(original)
                    if idx == -1:
                        continue
                    result = result[:idx] + rule.token + result[idx + len(original):]
                    replacements.append(Replacement(
                        category=rule.category,
                        original_text=original,
                        replacement_token=rule.token,
                        position=idx,
                    ))

        # --- Layer 2: Presidio NER (if enabled) ---
        if self.config.use_presidio:
            result = self._apply_presidio(result, rules, enabled, replacements)

        logger.debug("anonymized %d chars: %d replacement(s)", len(text), len(replacements))
        return AnonymizationResult(text=result, replacements=replacements)

    def detect(self, text: str) -> Detection:
        """Report which categories appear in text, without changing it."""
        if not isinstance(text, str) or not text:
            return Detection()
        return Detection(detected_types=detect_categories(text, self._rules))

    def suggestions_for(self, text: str) -> list[AnonymizationSuggestion]:
        suggestions: list[AnonymizationSuggestion] = []
        for category in self.detect(text).detected_types:
            rule = self.rule_for(category)
            suggestions.append(AnonymizationSuggestion(
                category=category,
                description=rule.description,
                replacement_token=rule.token,
                severity=rule.severity,
            ))
        return suggestions

    # ------------------------------------------------------------------
    # Custom detectors
    # ------------------------------------------------------------------

    def add_pattern(self, category: Category, pattern: str | re.Pattern, flags: int = 0) -> None:
        """Append a detector to a category, for this instance only."""
        compiled = compile_detector(pattern, flags)
        with self._lock:
            self._rules = tuple(
                dataclasses.replace(rule, detectors=rule.detectors + (compiled,))
                if rule.category is category else rule
                for rule in self._rules
            )

    def remove_pattern(self, category: Category, pattern: str | re.Pattern) -> bool:
        """Drop detectors of a category whose source matches. Returns True if any went."""
        source = pattern.pattern if isinstance(pattern, re.Pattern) else pattern
        removed = False
        with self._lock:
            rules: list[AnonymizationRule] = []
            for rule in self._rules:
                if rule.category is category:
                    kept = tuple(p for p in rule.detectors if p.pattern != source)
                    if len(kept) != len(rule.detectors):
                        removed = True
                        rule = dataclasses.replace(rule, detectors=kept)
                rules.append(rule)
            self._rules = tuple(rules)
        return removed

    # ------------------------------------------------------------------

    def _apply_presidio(
        self,
        text: str,
        rules: tuple[AnonymizationRule, ...],
        enabled: set[Category],
        replacements: list[Replacement],
    ) -> str:
        from .presidio_layer import ENTITY_CATEGORIES, scan_presidio

        tokens = {rule.category: rule.token for rule in rules}
        token_re = re.compile("|".join(re.escape(t) for t in set(tokens.values())))
        matches = scan_presidio(
            text,
            language=self.config.language,
            entities=self.config.presidio_entities,
            score_threshold=self.config.score_threshold,
            exclude_spans=[(m.start(), m.end()) for m in token_re.finditer(text)],
        )

        candidates = [
            m for m in matches
            if ENTITY_CATEGORIES.get(m.entity_type) in enabled
            and m.text not in self.config.allow_list
        ]

        # Apply right-to-left to preserve offsets
        for match in sorted(_dedupe(candidates), key=lambda m: m.start, reverse=True):
            category = ENTITY_CATEGORIES[match.entity_type]
            token = tokens[category]
            text = text[:match.start] + token + text[match.end:]
            replacements.append(Replacement(
                category=category,
                original_text=match.text,
                replacement_token=token,
                position=match.start,
                source=match.source,
            ))
        return text


def _dedupe(matches: list[EntityMatch]) -> list[EntityMatch]:
    """Remove overlapping matches, keeping highest score."""
    if not matches:
        return matches
    ranked = sorted(matches, key=lambda m: (-m.score, -(m.end - m.start)))
    taken: list[EntityMatch] = []
    used: list[tuple[int, int]] = []
    for m in ranked:
        if not any(m.start < e and m.end > s for s, e in used):
            taken.append(m)
            used.append((m.start, m.end))
    return sorted(taken, key=lambda m: m.start)
