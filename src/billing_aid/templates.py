"""Template matcher: ranks canned billing entries against a task description.

Scoring is deliberately simple: every legal-process keyword present in
both the user's text and a template item is worth 2 points, and a few
high-signal phrases add a bonus on top.  An item needs a positive score
to be suggested; a group's relevance is the sum of its item scores.
"""

from __future__ import annotations
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .catalog import DEFAULT_CATALOG
from .types import ScoredTemplate, TemplateGroup, TemplateItem, TemplateSuggestion

logger = logging.getLogger(__name__)

KEYWORDS: tuple[str, ...] = (
    "motion", "protective order", "deposition", "document", "discovery",
    "plaintiff", "defendant", "memorandum", "authorities", "legal",
    "analyze", "draft", "review", "research",
)
KEYWORD_POINTS = 2

PHRASE_BONUSES: tuple[tuple[str, int], ...] = (
    ("protective order", 5),
    ("deposition", 3),
    ("motion", 3),
)

PROMPT_GROUPS = 3
PROMPT_ITEMS = 3

_TEMPLATE_SUFFIXES = (".json", ".yaml", ".yml")


def score_item(description: str, item_description: str) -> int:
    """Relevance of one template item; both arguments already lowercased."""
    score = 0
    for keyword in KEYWORDS:
        if keyword in description and keyword in item_description:
            score += KEYWORD_POINTS
    for phrase, bonus in PHRASE_BONUSES:
        if phrase in description and phrase in item_description:
            score += bonus
    return score


class TemplateMatcher:
    """Read-only view over a template catalog."""

    def __init__(self, catalog: Iterable[TemplateGroup] = DEFAULT_CATALOG) -> None:
        self._catalog: tuple[TemplateGroup, ...] = tuple(catalog)

    @property
    def catalog(self) -> tuple[TemplateGroup, ...]:
        return self._catalog

    # ------------------------------------------------------------------
    # Browsing
    # ------------------------------------------------------------------

    def list_groups(self) -> list[TemplateGroup]:
        return list(self._catalog)

    def get(self, template_id: str) -> TemplateGroup | None:
        for group in self._catalog:
            if group.id == template_id:
                return group
        return None

    def by_category(self, category: str) -> list[TemplateGroup]:
        return [g for g in self._catalog if g.category == category]

    def search(self, query: str) -> list[dict]:
        """Substring search over group names/descriptions and item descriptions."""
        if not isinstance(query, str) or not query.strip():
            return []
        term = query.strip().lower()
        results: list[dict] = []
        for group in self._catalog:
            group_hit = term in group.name.lower() or term in group.description.lower()
            items = [i for i in group.items if term in i.description.lower()]
            if not group_hit and not items:
                continue
            entry = group.summary()
            if items:
                entry["matchingTemplates"] = [i.to_dict() for i in items]
            results.append(entry)
        return results

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def suggest(self, description: str) -> list[TemplateSuggestion]:
        """Groups with a positive relevance score, best first.

        Ties keep catalog order, both between groups and between the
        items of a group.
        """
        if not isinstance(description, str) or not description.strip():
            return []
        desc = description.lower()

        suggestions: list[TemplateSuggestion] = []
        for group in self._catalog:
            scored: list[ScoredTemplate] = []
            for item in group.items:
                score = score_item(desc, item.description.lower())
                if score > 0:
                    scored.append(ScoredTemplate(item=item, score=score))
            total = sum(s.score for s in scored)
            if total > 0:
                scored.sort(key=lambda s: s.score, reverse=True)
                suggestions.append(TemplateSuggestion(
                    group=group, relevance_score=total, matching_templates=scored,
                ))

        suggestions.sort(key=lambda s: s.relevance_score, reverse=True)
        logger.debug("template suggestions: %d group(s)", len(suggestions))
        return suggestions

    def format_for_prompt(
        self,
        suggestions: Iterable[TemplateSuggestion | Mapping[str, Any]] | None,
        original_description: str = "",
    ) -> str:
        """Render the top suggestions as a block for the LLM prompt.

        Accepts TemplateSuggestion objects or their dict form.  When
        suggestions is None they are computed from original_description.
        Unreadable entries are left out rather than raising.
        """
        if suggestions is None:
            suggestions = self.suggest(original_description)
        if isinstance(suggestions, (str, bytes, Mapping)) or not isinstance(suggestions, Iterable):
            return ""
        suggestions = list(suggestions)
        if not suggestions:
            return ""

        lines = ["", "", "Relevant billing templates to consider:"]
        for suggestion in suggestions[:PROMPT_GROUPS]:
            name = _field(suggestion, "name")
            if name:
                lines.append("")
                lines.append(f"{name}:")
            items = _field(suggestion, "matching_templates")
            if not isinstance(items, (list, tuple)):
                continue
            for item in items[:PROMPT_ITEMS]:
                time = _field(item, "time_estimate")
                text = _field(item, "description")
                if time is None or not text:
                    continue
                lines.append(f"- {_format_hours(time)}: {text}")
        lines.append("")
        lines.append("Use these templates as reference for appropriate time estimates "
                     "and professional language.")
        return "\n".join(lines)


_DICT_KEYS = {
    "name": ("name",),
    "matching_templates": ("matchingTemplates", "matching_templates"),
    "time_estimate": ("timeEstimate", "time_estimate", "time"),
    "description": ("description",),
}


def _field(obj: Any, attr: str) -> Any:
    """Read attr from a suggestion/scored item object or its dict form."""
    if isinstance(obj, Mapping):
        for key in _DICT_KEYS[attr]:
            if key in obj:
                return obj[key]
        return None
    if isinstance(obj, TemplateSuggestion) and attr == "name":
        return obj.group.name
    if isinstance(obj, ScoredTemplate):
        obj = obj.item
    return getattr(obj, attr, None)


def _format_hours(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if round(value, 1) == value:
            return f"{value:.1f}"
        return f"{value:g}"
    return str(value)


# ----------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------

def group_from_dict(data: Any) -> TemplateGroup:
    """Build a group from one template file's contents.

    Items may be listed under ``templates`` or ``items``, each with
    ``timeEstimate`` (or the older ``time``) and ``description``.
    """
    if not isinstance(data, Mapping):
        raise ValueError("template definition must be a mapping")
    raw_items = data.get("templates", data.get("items", []))
    if not isinstance(raw_items, list):
        raise ValueError("template items must be a list")
    items = tuple(
        TemplateItem(
            time_estimate=float(raw.get("timeEstimate", raw.get("time"))),
            description=str(raw["description"]),
        )
        for raw in raw_items
    )
    group_id = str(data["id"])
    return TemplateGroup(
        id=group_id,
        name=str(data.get("name", group_id)),
        description=str(data.get("description", "")),
        category=str(data.get("category", "general")),
        items=items,
    )


def load_catalog(directory: str | Path) -> tuple[TemplateGroup, ...]:
    """Load one template group per *.json / *.yaml file, in file-name order.

    Bad files and duplicate ids are skipped with a warning.
    """
    import yaml

    path = Path(directory).expanduser()
    if not path.is_dir():
        logger.warning("template directory %s not found", path)
        return ()

    groups: list[TemplateGroup] = []
    seen: set[str] = set()
    for file in sorted(path.iterdir()):
        if file.suffix.lower() not in _TEMPLATE_SUFFIXES:
            continue
        try:
            with open(file, encoding="utf-8") as f:
                data = json.load(f) if file.suffix.lower() == ".json" else yaml.safe_load(f)
            group = group_from_dict(data)
        except (OSError, ValueError, TypeError, KeyError, AttributeError, yaml.YAMLError) as e:
            logger.warning("skipping template file %s: %s", file.name, e)
            continue
        if group.id in seen:
            logger.warning("skipping template file %s: duplicate id %r", file.name, group.id)
            continue
        seen.add(group.id)
        groups.append(group)

    logger.info("loaded %d template group(s) from %s", len(groups), path)
    return tuple(groups)
