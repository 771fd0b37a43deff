"""Tests for the HTTP sidecar and the CLI."""

import io
import json
import sys, os
import threading
import urllib.error
import urllib.request
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from billing_aid import create_pipeline
from billing_aid.cli import main
from billing_aid.server import create_server


@pytest.fixture
def base_url():
    server = create_server(create_pipeline(), host="127.0.0.1", port=0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}"
    server.shutdown()
    server.server_close()


def _call(base_url, method, path, body=None, raw=None):
    data = raw if raw is not None else (json.dumps(body).encode() if body is not None else None)
    req = urllib.request.Request(
        base_url + path, data=data, method=method,
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read())


# ── HTTP ─────────────────────────────────────────────────────────────

def test_health(base_url):
    status, data = _call(base_url, "GET", "/health")
    assert status == 200
    assert data["status"] == "ok"
    assert data["templates"] == 7


def test_check_words(base_url):
    status, data = _call(base_url, "POST", "/check-words", {"text": "Prepare for deposition"})
    assert status == 200
    assert data["count"] == 1
    assert data["flags"][0]["word"] == "deposition"
    assert data["flags"][0]["positions"][0]["matchedText"] == "deposition"


def test_replace_word(base_url):
    status, data = _call(base_url, "POST", "/replace-word", {
        "text": "Attend Deposition", "flaggedWord": "deposition", "replacement": "examination",
    })
    assert status == 200
    assert data == {"updatedText": "Attend examination"}

    status, data = _call(base_url, "POST", "/replace-word", {"text": "Attend Deposition"})
    assert status == 400


def test_templates(base_url):
    status, data = _call(base_url, "GET", "/templates")
    assert status == 200
    assert data["templates"][0]["id"] == "discovery"
    assert data["templates"][0]["templateCount"] == 4

    status, data = _call(base_url, "GET", "/templates/protective-order")
    assert status == 200
    assert data["template"]["templates"][0]["timeEstimate"] == 1.5

    status, data = _call(base_url, "GET", "/templates/nope")
    assert status == 404
    assert data["success"] is False


def test_suggest(base_url):
    status, data = _call(base_url, "POST", "/templates/suggest",
                         {"description": "draft a protective order after deposition"})
    assert status == 200
    assert data["suggestions"][0]["id"] == "protective-order"
    assert "Relevant billing templates" in data["prompt"]


def test_anonymize(base_url):
    status, data = _call(base_url, "POST", "/anonymize", {
        "text": "Please contact John Smith at john.smith@example.com or 555-123-4567 "
                "regarding case #2024-001.",
    })
    assert status == 200
    assert data["wasModified"] is True
    assert len(data["replacements"]) == 4

    status, data = _call(base_url, "POST", "/anonymize", {
        "text": "SSN 123-45-6789", "options": {"anonymizeSSN": False},
    })
    assert data["text"] == "SSN 123-45-6789"


def test_detect(base_url):
    status, data = _call(base_url, "POST", "/detect-identifiable-info", {"text": "SSN 123-45-6789"})
    assert status == 200
    assert data["hasIdentifiableInfo"] is True
    assert data["detectedTypes"] == ["ssn"]
    assert data["suggestions"][0]["severity"] == "critical"


def test_bad_requests(base_url):
    status, data = _call(base_url, "POST", "/anonymize", raw=b"{not json")
    assert status == 400
    assert data["error"] == "invalid JSON"

    status, _ = _call(base_url, "POST", "/anonymize", body=["a", "list"])
    assert status == 400

    status, _ = _call(base_url, "POST", "/nowhere", body={})
    assert status == 404


def test_non_utf8_body_is_bad_request(base_url):
    status, data = _call(base_url, "POST", "/check-words", raw=b"\xff\xfe{\"text\": 1}")
    assert status == 400
    assert data["error"] == "invalid JSON"


# ── CLI ──────────────────────────────────────────────────────────────

def _run_cli(monkeypatch, capsys, argv, stdin=""):
    monkeypatch.setattr(sys, "stdin", io.StringIO(stdin))
    main(["--config", ""] + argv)
    return json.loads(capsys.readouterr().out)


def test_cli_check_words(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys, ["check-words"], "do not depose the plaintiff")
    assert [f["word"] for f in out["flags"]] == ["depose", "plaintiff"]


def test_cli_replace_word(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys,
                   ["replace-word", "--word", "plaintiff", "--replacement", "claimant"],
                   "Call with plaintiff")
    assert out == {"updatedText": "Call with claimant"}


def test_cli_anonymize_skip(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys, ["anonymize", "--skip", "emails"],
                   "John Smith, john@example.com")
    assert out["text"] == "[CLIENT NAME], john@example.com"


def test_cli_template_not_found(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(SystemExit) as exc:
        main(["--config", "", "template", "nope"])
    assert exc.value.code == 1
    assert "not found" in json.loads(capsys.readouterr().out)["error"]


def test_cli_suggest(monkeypatch, capsys):
    out = _run_cli(monkeypatch, capsys, ["suggest"], "file a motion to compel\n")
    assert out["suggestions"][0]["id"] == "motion-practice"
    assert "Motion Practice:" in out["prompt"]
