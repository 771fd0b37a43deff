"""YAML/dict config loader for billing-aid.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).

Example YAML:

    billing_aid:
      min_description_length: 10
      anonymize_input: true
      anonymizer:
        skip_categories:
          - dates
        allow_list:            # must equal a whole detector hit
          - Acme Legal
        use_presidio: false
      flagged_words:
        add:
          settlement:
            alternatives: [resolution, compromise]
            reason: Client prefers neutral wording
            severity: low
        remove:
          - email
      templates:
        dir: ./templates       # optional; built-in catalog otherwise
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any

from .anonymizer import Anonymizer, AnonymizerConfig
from .catalog import DEFAULT_CATALOG
from .flagged_words import FlaggedWordService
from .pipeline import BillingPipeline
from .templates import TemplateMatcher, load_catalog
from .types import Category

logger = logging.getLogger(__name__)


def _categories(names: Any) -> set[Category]:
    found: set[Category] = set()
    for name in names or []:
        category = Category.lookup(str(name))
        if category is None:
            logger.warning("ignoring unknown category %r in config", name)
            continue
        found.add(category)
    return found


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "billing_aid" key or flat
    if "billing_aid" in data:
        data = data["billing_aid"] or {}

    anonymizer = data.get("anonymizer") or {}
    flagged = data.get("flagged_words") or {}
    templates = data.get("templates") or {}

    return {
        "min_description_length": int(data.get("min_description_length", 10)),
        "anonymize_input": bool(data.get("anonymize_input", True)),
        "skip_categories": _categories(anonymizer.get("skip_categories")),
        "allow_list": set(anonymizer.get("allow_list") or []),
        "use_presidio": bool(anonymizer.get("use_presidio", False)),
        "language": anonymizer.get("language", "en"),
        "score_threshold": float(anonymizer.get("score_threshold", 0.35)),
        "entities": anonymizer.get("entities"),
        "flagged_add": dict(flagged.get("add") or {}),
        "flagged_remove": list(flagged.get("remove") or []),
        "templates_dir": templates.get("dir"),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(Path(path).expanduser(), encoding="utf-8") as f:
        return load_config(yaml.safe_load(f))


def create_pipeline(config: dict[str, Any] | None = None) -> BillingPipeline:
    """Create a fully configured pipeline from a config dict."""
    config = config or {}
    cfg = config if "skip_categories" in config else load_config(config)

    anonymizer = Anonymizer(AnonymizerConfig(
        skip_categories=cfg["skip_categories"],
        allow_list=cfg["allow_list"],
        use_presidio=cfg["use_presidio"],
        language=cfg["language"],
        score_threshold=cfg["score_threshold"],
        presidio_entities=cfg.get("entities"),
    ))

    flagged_words = FlaggedWordService()
    for word in cfg["flagged_remove"]:
        flagged_words.remove_flagged_word(str(word))
    for word, entry in cfg["flagged_add"].items():
        entry = entry or {}
        flagged_words.add_flagged_word(
            str(word),
            alternatives=entry.get("alternatives"),
            reason=entry.get("reason"),
            severity=entry.get("severity"),
        )

    catalog = load_catalog(cfg["templates_dir"]) if cfg["templates_dir"] else DEFAULT_CATALOG

    return BillingPipeline(
        matcher=TemplateMatcher(catalog),
        flagged_words=flagged_words,
        anonymizer=anonymizer,
        min_description_length=cfg["min_description_length"],
        anonymize_input=cfg["anonymize_input"],
    )
