"""Tests for the anonymizer: regex categories, options, audit trail, NER layer."""

import sys, os
from types import SimpleNamespace
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from billing_aid import Anonymizer, AnonymizerConfig, Category, Severity
from billing_aid import presidio_layer
from billing_aid.types import EntityMatch

SCENARIO = ("Please contact John Smith at john.smith@example.com or 555-123-4567 "
            "regarding case #2024-001.")


# ── Default redaction ────────────────────────────────────────────────

def test_contact_details_redacted():
    result = Anonymizer().anonymize(SCENARIO)
    assert result.text == ("Please contact [CLIENT NAME] at [EMAIL ADDRESS] or [PHONE NUMBER] "
                           "regarding [CASE NUMBER].")
    assert len(result.replacements) == 4
    assert result.was_modified
    assert [r.category for r in result.replacements] == [
        Category.NAMES, Category.EMAILS, Category.PHONES, Category.CASE_NUMBERS,
    ]
    assert [r.original_text for r in result.replacements] == [
        "John Smith", "john.smith@example.com", "555-123-4567", "case #2024-001",
    ]


def test_positions_point_at_tokens():
    result = Anonymizer().anonymize(SCENARIO)
    assert result.replacements[0].position == len("Please contact ")
    for r in result.replacements:
        assert result.text[r.position:r.position + len(r.replacement_token)] == r.replacement_token


def test_redacted_text_has_nothing_left_to_detect():
    anonymizer = Anonymizer()
    result = anonymizer.anonymize(SCENARIO)
    assert anonymizer.detect(SCENARIO).has_identifiable_info
    assert not anonymizer.detect(result.text).has_identifiable_info


def test_ssn_redacted_by_default():
    result = Anonymizer().anonymize("The defendant's SSN is 123-45-6789.")
    assert result.text == "The defendant's SSN is [SSN]."
    assert [r.category for r in result.replacements] == [Category.SSN]


def test_repeated_value_replaced_each_time():
    result = Anonymizer().anonymize("John Smith met John Smith")
    assert result.text == "[CLIENT NAME] met [CLIENT NAME]"
    assert [r.position for r in result.replacements] == [0, 18]


def test_earlier_category_wins():
    result = Anonymizer().anonymize("Acme Widgets Inc")
    assert result.text == "[CLIENT NAME] Inc"
    assert [r.category for r in result.replacements] == [Category.NAMES]


def test_company_when_names_disabled():
    result = Anonymizer().anonymize("Acme Widgets Inc. paid", {"names": False})
    assert result.text == "[COMPANY NAME]. paid"


def test_clean_text_untouched():
    result = Anonymizer().anonymize("reviewed the file and drafted a reply")
    assert result.text == "reviewed the file and drafted a reply"
    assert result.replacements == []
    assert not result.was_modified


def test_malformed_input():
    a = Anonymizer()
    for value in (None, "", 42, ["text"]):
        result = a.anonymize(value)
        assert result.text == ""
        assert result.replacements == []
        assert not result.was_modified


def test_result_to_dict():
    data = Anonymizer().anonymize("Email bob@example.com").to_dict()
    assert data["wasModified"] is True
    assert data["replacements"][0] == {
        "category": "emails",
        "originalText": "bob@example.com",
        "replacementToken": "[EMAIL ADDRESS]",
        "position": 6,
        "source": "regex",
    }


# ── Options & config ─────────────────────────────────────────────────

def test_ssn_option_disables_category():
    text = "The defendant's SSN is 123-45-6789."
    result = Anonymizer().anonymize(text, {"anonymizeSSN": False})
    assert result.text == text
    assert not result.was_modified


def test_option_key_spellings():
    assert Category.lookup("creditCards") is Category.CREDIT_CARDS
    assert Category.lookup("credit_cards") is Category.CREDIT_CARDS
    assert Category.lookup("anonymizeCreditCards") is Category.CREDIT_CARDS
    assert Category.lookup("anonymizeSSN") is Category.SSN
    assert Category.lookup("case-numbers") is Category.CASE_NUMBERS
    assert Category.lookup("passport") is None


def test_only_explicit_false_disables():
    a = Anonymizer()
    assert Category.EMAILS in a.enabled_categories({"emails": None})
    assert Category.EMAILS not in a.enabled_categories({"emails": False})
    assert a.enabled_categories("not a mapping") == set(Category)


def test_skip_categories_and_reenable():
    a = Anonymizer(AnonymizerConfig(skip_categories={Category.EMAILS}))
    assert a.anonymize("Email bob@example.com").text == "Email bob@example.com"
    assert a.anonymize("Email bob@example.com", {"emails": True}).text == "Email [EMAIL ADDRESS]"


def test_allow_list():
    a = Anonymizer(AnonymizerConfig(allow_list={"John Smith"}))
    result = a.anonymize("John Smith wrote from john@example.com")
    assert result.text == "John Smith wrote from [EMAIL ADDRESS]"


def test_allow_list_entry_must_equal_whole_hit():
    assert Anonymizer(AnonymizerConfig(allow_list={"Acme Legal"})).anonymize(
        "Acme Legal LLP").text == "Acme Legal LLP"
    # "Acme Legal" is the names hit; the longer entry never equals it
    assert Anonymizer(AnonymizerConfig(allow_list={"Acme Legal LLP"})).anonymize(
        "Acme Legal LLP").text == "[CLIENT NAME] LLP"


# ── Detection & suggestions ──────────────────────────────────────────

def test_detect_lists_each_category_once():
    detection = Anonymizer().detect("Email alice@example.com or bob@example.com on 01/02/2024")
    assert detection.detected_types == [Category.EMAILS, Category.DATES]
    assert detection.count == 2
    assert detection.to_dict()["detectedTypes"] == ["emails", "dates"]


def test_detect_malformed_input():
    detection = Anonymizer().detect(None)
    assert not detection.has_identifiable_info
    assert detection.count == 0


def test_suggestions_carry_severity():
    suggestions = Anonymizer().suggestions_for("SSN 123-45-6789, card 4111 1111 1111 1111")
    by_category = {s.category: s for s in suggestions}
    assert by_category[Category.SSN].severity is Severity.CRITICAL
    assert by_category[Category.SSN].replacement_token == "[SSN]"
    assert by_category[Category.CREDIT_CARDS].severity is Severity.CRITICAL
    assert Anonymizer().suggestions_for("nothing to see here") == []


# ── Custom detectors ─────────────────────────────────────────────────

def test_add_and_remove_pattern():
    a = Anonymizer()
    text = "Billing for Matter 4471 closed"
    a.add_pattern(Category.CASE_NUMBERS, r"\bMatter\s+\d+\b")
    assert a.anonymize(text).text == "Billing for [CASE NUMBER] closed"
    assert Anonymizer().anonymize(text).text == text       # other instances unaffected

    assert a.remove_pattern(Category.CASE_NUMBERS, r"\bMatter\s+\d+\b")
    assert a.anonymize(text).text == text
    assert not a.remove_pattern(Category.CASE_NUMBERS, r"\bMatter\s+\d+\b")


# ── Presidio layer (scanner stubbed) ─────────────────────────────────

def _fake_scan(word, entity_type="PERSON"):
    calls = []

    def scan(text, **kwargs):
        calls.append(kwargs)
        start = text.find(word)
        if start == -1:
            return []
        return [EntityMatch(entity_type, start, start + len(word), word, 0.85)]
    return scan, calls


def test_presidio_layer_redacts_leftovers(monkeypatch):
    scan, calls = _fake_scan("smith")
    monkeypatch.setattr(presidio_layer, "scan_presidio", scan)
    a = Anonymizer(AnonymizerConfig(use_presidio=True))

    result = a.anonymize("Email bob@example.com and met with smith today")
    assert result.text == "Email [EMAIL ADDRESS] and met with [CLIENT NAME] today"
    last = result.replacements[-1]
    assert last.source == "presidio"
    assert last.category is Category.NAMES
    assert calls[0]["exclude_spans"] == [(6, 6 + len("[EMAIL ADDRESS]"))]


def test_presidio_layer_respects_options(monkeypatch):
    scan, _ = _fake_scan("smith")
    monkeypatch.setattr(presidio_layer, "scan_presidio", scan)
    a = Anonymizer(AnonymizerConfig(use_presidio=True))
    result = a.anonymize("met with smith today", {"names": False})
    assert result.text == "met with smith today"


# ── Presidio layer (engine stubbed) ──────────────────────────────────

class _FakeEngine:
    def __init__(self, results):
        self.results = results
        self.calls = []

    def analyze(self, **kwargs):
        self.calls.append(kwargs)
        return self.results


def _result(entity_type, start, end, score=0.9):
    return SimpleNamespace(entity_type=entity_type, start=start, end=end, score=score)


def test_scan_presidio_maps_and_filters(monkeypatch):
    text = "[CLIENT NAME] met smith, see www.example.com"
    engine = _FakeEngine([
        _result("URL", 29, 44),          # no category for URLs
        _result("PERSON", 0, 13),        # overlaps the existing token
        _result("PERSON", 18, 23, 0.7),
    ])
    monkeypatch.setattr(presidio_layer, "_get_engine", lambda language="en": engine)

    matches = presidio_layer.scan_presidio(text, exclude_spans=[(0, 13)])
    assert [(m.entity_type, m.text, m.score) for m in matches] == [("PERSON", "smith", 0.7)]
    assert matches[0].source == "presidio"
    assert engine.calls[0]["entities"] == presidio_layer.DEFAULT_ENTITIES
    assert engine.calls[0]["score_threshold"] == 0.35


def test_scan_presidio_ignores_nrp(monkeypatch):
    engine = _FakeEngine([_result("NRP", 0, 8)])
    monkeypatch.setattr(presidio_layer, "_get_engine", lambda language="en": engine)
    assert presidio_layer.scan_presidio("Catholic parish records") == []
    assert "NRP" not in presidio_layer.ENTITY_CATEGORIES


def test_presidio_layer_end_to_end_with_engine(monkeypatch):
    engine = _FakeEngine([_result("PERSON", 9, 14), _result("URL", 0, 5)])
    monkeypatch.setattr(presidio_layer, "_get_engine", lambda language="en": engine)
    a = Anonymizer(AnonymizerConfig(use_presidio=True))
    result = a.anonymize("met with smith today")
    assert result.text == "met with [CLIENT NAME] today"
    assert [r.source for r in result.replacements] == ["presidio"]
