"""CLI interface for billing-aid.

Usage:
    # Flag client-sensitive words (stdin: text, stdout: JSON flags)
    echo "Prepare for deposition of defendant" | billing-aid check-words

    # Swap a flagged word for an alternative
    echo "Attend deposition" | billing-aid replace-word --word deposition --replacement examination

    # Redact identifiable information
    echo "Call John Smith at 555-123-4567" | billing-aid anonymize --skip dates

    # Suggest billing templates for a task description
    echo "draft a protective order" | billing-aid suggest

    # Run the HTTP sidecar
    billing-aid serve --port 18792

Configuration comes from --config or $BILLING_AID_CONFIG (YAML).
Logs go to stderr so stdout stays JSON.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from typing import Any

from .config import create_pipeline, load_from_yaml
from .pipeline import BillingPipeline

DEFAULT_CONFIG = os.environ.get("BILLING_AID_CONFIG", "")


def _build_pipeline(args: argparse.Namespace) -> BillingPipeline:
    config = load_from_yaml(args.config) if args.config else None
    return create_pipeline(config)


def _emit(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_check_words(args: argparse.Namespace) -> None:
    """Flag client-sensitive words in stdin text."""
    pipeline = _build_pipeline(args)
    flags = pipeline.flagged_words.scan(sys.stdin.read())
    _emit({"flags": [f.to_dict() for f in flags], "count": len(flags)})


def cmd_replace_word(args: argparse.Namespace) -> None:
    pipeline = _build_pipeline(args)
    text = sys.stdin.read()
    _emit({"updatedText": pipeline.flagged_words.replace(text, args.word, args.replacement)})


def cmd_anonymize(args: argparse.Namespace) -> None:
    """Redact identifiable information from stdin text."""
    pipeline = _build_pipeline(args)
    options = {name: False for name in args.skip.split(",") if name}
    result = pipeline.anonymizer.anonymize(sys.stdin.read(), options)
    _emit(result.to_dict())


def cmd_detect(args: argparse.Namespace) -> None:
    pipeline = _build_pipeline(args)
    text = sys.stdin.read()
    detection = pipeline.anonymizer.detect(text)
    _emit({
        **detection.to_dict(),
        "suggestions": [s.to_dict() for s in pipeline.anonymizer.suggestions_for(text)],
    })


def cmd_templates(args: argparse.Namespace) -> None:
    """List template groups."""
    matcher = _build_pipeline(args).matcher
    groups = matcher.by_category(args.category) if args.category else matcher.list_groups()
    _emit([g.summary() for g in groups])


def cmd_template(args: argparse.Namespace) -> None:
    """Show one template group."""
    group = _build_pipeline(args).matcher.get(args.id)
    if group is None:
        _emit({"error": f"template {args.id!r} not found"})
        sys.exit(1)
    _emit(group.to_dict())


def cmd_suggest(args: argparse.Namespace) -> None:
    """Rank template groups against a task description on stdin."""
    matcher = _build_pipeline(args).matcher
    description = sys.stdin.read().strip()
    suggestions = matcher.suggest(description)
    _emit({
        "suggestions": [s.to_dict() for s in suggestions],
        "prompt": matcher.format_for_prompt(suggestions, description),
    })


def cmd_serve(args: argparse.Namespace) -> None:
    from .server import serve
    serve(_build_pipeline(args), host=args.host, port=args.port)


def main(argv: list[str] | None = None) -> None:
    from .server import DEFAULT_HOST, DEFAULT_PORT

    parser = argparse.ArgumentParser(
        prog="billing-aid",
        description="Flagged-word, template and anonymization tools for legal billing entries",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="YAML config path")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (stderr)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("check-words", help="Flag client-sensitive words (stdin)")
    p = sub.add_parser("replace-word", help="Replace a flagged word (stdin)")
    p.add_argument("--word", required=True)
    p.add_argument("--replacement", required=True)
    p = sub.add_parser("anonymize", help="Redact identifiable info (stdin)")
    p.add_argument("--skip", default="", help="Comma-separated categories to leave alone")
    sub.add_parser("detect", help="Report identifiable info categories (stdin)")
    p = sub.add_parser("templates", help="List template groups")
    p.add_argument("--category", default="")
    p = sub.add_parser("template", help="Show one template group")
    p.add_argument("id")
    sub.add_parser("suggest", help="Suggest templates for a description (stdin)")
    p = sub.add_parser("serve", help="Run the HTTP sidecar")
    p.add_argument("--host", default=DEFAULT_HOST)
    p.add_argument("--port", type=int, default=DEFAULT_PORT)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "check-words": cmd_check_words,
        "replace-word": cmd_replace_word,
        "anonymize": cmd_anonymize,
        "detect": cmd_detect,
        "templates": cmd_templates,
        "template": cmd_template,
        "suggest": cmd_suggest,
        "serve": cmd_serve,
    }
    cmds[args.command](args)


if __name__ == "__main__":
    main()
