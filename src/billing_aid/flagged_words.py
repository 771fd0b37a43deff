"""Client-flagged terms: detection and guided replacement.

Firms keep a list of words a client does not want to see on an invoice
("deposition", party labels, anything that smells of personal data).
``FlaggedWordService.scan`` reports every occurrence with alternatives;
``replace`` swaps one term for the alternative the user picked.

Single words only match as whole words.  Multi-word phrases match as
plain substrings, case-insensitively.
"""

from __future__ import annotations
import logging
import re
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from .types import FlagPosition, Severity, WordFlag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlaggedWordEntry:
    alternatives: tuple[str, ...]
    reason: str
    severity: Severity


_CLIENT_FLAGGED = "Client has flagged this word - consider using alternatives"
_PARTY = "Identifies a party to the litigation"
_CONTACT = "Contains potentially sensitive contact information"
_PERSONAL = "Contains potentially sensitive personal information"
_ID = "Contains highly sensitive personal identification information"


def _entry(alternatives: Iterable[str], reason: str, severity: Severity) -> FlaggedWordEntry:
    return FlaggedWordEntry(tuple(alternatives), reason, severity)


DEFAULT_FLAGGED_WORDS: Mapping[str, FlaggedWordEntry] = MappingProxyType({
    # Deposition family (client flagged)
    "deposition": _entry(["examination", "testimony", "oral examination", "sworn statement",
                          "examination under oath"], _CLIENT_FLAGGED, Severity.WARNING),
    "depose": _entry(["examine", "question under oath", "take testimony", "conduct examination"],
                     _CLIENT_FLAGGED, Severity.WARNING),
    "deposing": _entry(["examining", "questioning under oath", "taking testimony",
                        "conducting examination"], _CLIENT_FLAGGED, Severity.WARNING),
    "deposed": _entry(["examined", "questioned under oath", "testified", "gave sworn statement"],
                      _CLIENT_FLAGGED, Severity.WARNING),

    # Sensitive information
    "client name": _entry(["client", "party", "individual", "person"],
                          "Contains potentially sensitive client identification information",
                          Severity.HIGH),
    "plaintiff": _entry(["claimant", "petitioner", "complainant", "party"], _PARTY, Severity.MEDIUM),
    "defendant": _entry(["respondent", "accused", "party", "opposing party"], _PARTY, Severity.MEDIUM),
    "company name": _entry(["entity", "organization", "corporation", "business"],
                           "Contains potentially sensitive business identification information",
                           Severity.HIGH),
    "address": _entry(["location", "place", "site", "premises"],
                      "Contains potentially sensitive location information", Severity.HIGH),
    "phone number": _entry(["contact information", "telephone", "phone", "communication"],
                           _CONTACT, Severity.HIGH),
    "email": _entry(["electronic communication", "message", "correspondence", "contact"],
                    _CONTACT, Severity.HIGH),
    "social security": _entry(["SSN", "identification number", "ID number", "personal identifier"],
                              _ID, Severity.CRITICAL),
    "ssn": _entry(["social security number", "identification number", "ID number",
                   "personal identifier"], _ID, Severity.CRITICAL),
    "date of birth": _entry(["DOB", "birth date", "age", "personal information"],
                            _PERSONAL, Severity.HIGH),
    "dob": _entry(["date of birth", "birth date", "age", "personal information"],
                  _PERSONAL, Severity.HIGH),
    "medical record": _entry(["health information", "medical information", "health data",
                              "medical data"],
                             "Contains highly sensitive medical information protected by HIPAA",
                             Severity.CRITICAL),
    "financial information": _entry(["financial data", "monetary information", "economic data",
                                     "financial details"],
                                    "Contains potentially sensitive financial information",
                                    Severity.HIGH),
    "bank account": _entry(["account", "financial account", "banking information", "account number"],
                           "Contains highly sensitive financial account information",
                           Severity.CRITICAL),
    "credit card": _entry(["payment method", "card information", "payment card",
                           "financial instrument"],
                          "Contains highly sensitive payment information", Severity.CRITICAL),
    "personal information": _entry(["personal data", "individual information", "personal details",
                                    "private information"], _PERSONAL, Severity.HIGH),

    # Privilege markers
    "confidential": _entry(["private", "sensitive", "restricted", "proprietary"],
                           "Indicates sensitive or restricted information", Severity.MEDIUM),
    "privileged": _entry(["protected", "confidential", "restricted", "sensitive"],
                         "Indicates legally protected information", Severity.MEDIUM),
    "attorney-client": _entry(["legal privilege", "attorney privilege", "legal protection",
                               "privileged communication"],
                              "Indicates legally privileged attorney-client communication",
                              Severity.MEDIUM),
    "work product": _entry(["attorney work product", "legal work", "case preparation",
                            "litigation materials"],
                           "Indicates attorney work product that may be privileged",
                           Severity.MEDIUM),
})


@lru_cache(maxsize=1024)
def _compile(term: str, whole_word: bool) -> re.Pattern:
    body = re.escape(term)
    if whole_word:
        body = rf"(?<!\w){body}(?!\w)"
    return re.compile(body, re.IGNORECASE)


class FlaggedWordService:
    """Scans text against a table of flagged terms.

    The table is replaced wholesale on every add/remove (under a lock),
    so a scan running at the same time sees either the old or the new
    table, never a half-updated one.
    """

    def __init__(self, table: Mapping[str, FlaggedWordEntry] | None = None) -> None:
        source = DEFAULT_FLAGGED_WORDS if table is None else table
        self._table: Mapping[str, FlaggedWordEntry] = MappingProxyType(
            {word.lower(): entry for word, entry in source.items()}
        )
        self._lock = threading.Lock()

    @property
    def flagged_words(self) -> Mapping[str, FlaggedWordEntry]:
        return self._table

    def is_flagged(self, word: str) -> bool:
        return isinstance(word, str) and word.lower() in self._table

    def scan(self, text: str) -> list[WordFlag]:
        """Return one WordFlag per table entry found in text, in table order."""
        if not isinstance(text, str) or not text:
            return []

        flags: list[WordFlag] = []
        for word, entry in self._table.items():
            try:
                pattern = _compile(word, " " not in word)
            except re.error as e:
                logger.warning("skipping flagged word %r: %s", word, e)
                continue
            positions = [
                FlagPosition(start=m.start(), end=m.end(), matched_text=m.group())
                for m in pattern.finditer(text)
            ]
            if positions:
                flags.append(WordFlag(
                    word=word,
                    severity=entry.severity,
                    reason=entry.reason,
                    alternatives=list(entry.alternatives),
                    positions=positions,
                ))

        logger.debug("scanned %d chars: %d flagged term(s)", len(text), len(flags))
        return flags

    def replace(self, text: str, flagged_word: str, replacement: str) -> str:
        """Replace every whole-word, case-insensitive occurrence of flagged_word."""
        if not isinstance(text, str):
            return ""
        if not isinstance(flagged_word, str) or not flagged_word or not isinstance(replacement, str):
            return text
        pattern = _compile(flagged_word, True)
        return pattern.sub(lambda _: replacement, text)

    def add_flagged_word(
        self,
        word: str,
        alternatives: Iterable[str] | None = None,
        reason: str | None = None,
        severity: Severity | str | None = None,
    ) -> None:
        key = word.strip().lower()
        if not key:
            raise ValueError("flagged word must not be empty")
        entry = FlaggedWordEntry(
            alternatives=tuple(alternatives or ()),
            reason=reason or "Client has flagged this word",
            severity=Severity(severity) if severity else Severity.WARNING,
        )
        with self._lock:
            table = dict(self._table)
            table[key] = entry
            self._table = MappingProxyType(table)

    def remove_flagged_word(self, word: str) -> bool:
        key = word.strip().lower()
        with self._lock:
            if key not in self._table:
                return False
            table = dict(self._table)
            del table[key]
            self._table = MappingProxyType(table)
        return True
