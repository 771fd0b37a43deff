"""Regex rules for identifiable information.

One rule per category: its detectors (tried in order), the bracketed
token that replaces a hit, and the severity/description shown to users.
Rules are listed in redaction priority order; an earlier category wins
when two categories would claim overlapping text.
"""

from __future__ import annotations
import re
from dataclasses import dataclass

from .types import Category, Severity

_I = re.IGNORECASE

_STREET = r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Way|Circle|Cir|Court|Ct)"
_MONTH = r"(?:January|February|March|April|May|June|July|August|September|October|November|December)"


@dataclass(frozen=True)
class AnonymizationRule:
    category: Category
    detectors: tuple[re.Pattern, ...]
    token: str
    severity: Severity
    description: str


def compile_detector(pattern: str | re.Pattern, flags: int = 0) -> re.Pattern:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, flags)


DEFAULT_RULES: tuple[AnonymizationRule, ...] = (
    AnonymizationRule(Category.NAMES, (
        re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b"),                   # John Smith
        re.compile(r"\b[A-Z][a-z]+ [A-Z]\. [A-Z][a-z]+\b"),           # John A. Smith
        re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+ [A-Z][a-z]+\b"),       # John Michael Smith
    ), "[CLIENT NAME]", Severity.MEDIUM,
        "Personal names that should be anonymized"),

    AnonymizationRule(Category.EMAILS, (
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),
    ), "[EMAIL ADDRESS]", Severity.HIGH,
        "Email addresses that should be anonymized"),

    AnonymizationRule(Category.PHONES, (
        re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),                 # 123-456-7890
        re.compile(r"\(\d{3}\)\s?\d{3}[-.]?\d{4}\b"),                 # (123) 456-7890
        re.compile(r"\b\d{3}\s\d{3}\s\d{4}\b"),                       # 123 456 7890
    ), "[PHONE NUMBER]", Severity.MEDIUM,
        "Phone numbers that should be anonymized"),

    AnonymizationRule(Category.SSN, (
        re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b"),                       # 123-45-6789 or 123456789
    ), "[SSN]", Severity.CRITICAL,
        "Social Security Numbers that must be anonymized"),

    AnonymizationRule(Category.CREDIT_CARDS, (
        re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
        re.compile(r"\b\d{13,19}\b"),
    ), "[CREDIT CARD]", Severity.CRITICAL,
        "Credit card numbers that must be anonymized"),

    AnonymizationRule(Category.ADDRESSES, (
        re.compile(rf"\b\d+\s+[A-Za-z\s]+{_STREET}\b", _I),
        re.compile(rf"\b\d+\s+[A-Za-z\s]+{_STREET},?\s*[A-Za-z\s]+,?\s*[A-Z]{{2}}\s*\d{{5}}(?:-\d{{4}})?\b", _I),
    ), "[ADDRESS]", Severity.HIGH,
        "Physical addresses that should be anonymized"),

    AnonymizationRule(Category.CASE_NUMBERS, (
        re.compile(r"\bCase\s*#?\s*\d+[-\w]*\b", _I),
        re.compile(r"\bFile\s*#?\s*\d+[-\w]*\b", _I),
        re.compile(r"\bDocket\s*#?\s*\d+[-\w]*\b", _I),
        re.compile(r"\b[A-Z]{2,4}-\d{4}-\d{4,6}\b"),                  # court format
    ), "[CASE NUMBER]", Severity.LOW,
        "Case numbers that should be anonymized"),

    AnonymizationRule(Category.DATES, (
        re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),                     # MM/DD/YYYY
        re.compile(r"\b\d{1,2}-\d{1,2}-\d{4}\b"),                     # MM-DD-YYYY
        re.compile(r"\b\d{4}-\d{1,2}-\d{1,2}\b"),                     # YYYY-MM-DD
        re.compile(rf"\b{_MONTH}\s+\d{{1,2}},?\s+\d{{4}}\b", _I),
    ), "[DATE]", Severity.LOW,
        "Specific dates that should be anonymized"),

    AnonymizationRule(Category.COMPANIES, (
        re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\s+(?:Inc|LLC|Corp|Corporation|Company|Co|Ltd|Limited)\b", _I),
        re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\s+(?:Associates|Partners|Group|Services|Systems|Solutions)\b", _I),
    ), "[COMPANY NAME]", Severity.MEDIUM,
        "Company names that should be anonymized"),
)


def detect_categories(text: str, rules: tuple[AnonymizationRule, ...] = DEFAULT_RULES) -> list[Category]:
    """Categories with at least one detector hit, each listed once, in rule order."""
    found: list[Category] = []
    for rule in rules:
        if any(p.search(text) for p in rule.detectors):
            found.append(rule.category)
    return found
