"""billing-aid: flagged-word, template and anonymization tools for legal billing entries."""

from .anonymizer import Anonymizer, AnonymizerConfig
from .flagged_words import FlaggedWordService, FlaggedWordEntry
from .templates import TemplateMatcher, load_catalog
from .pipeline import BillingPipeline, EmptyCompletionError
from .config import create_pipeline, load_config, load_from_yaml
from .types import (
    AnonymizationResult, Category, Detection, Replacement, Severity,
    TemplateGroup, TemplateItem, TemplateSuggestion, WordFlag,
)

__all__ = [
    "Anonymizer", "AnonymizerConfig",
    "FlaggedWordService", "FlaggedWordEntry",
    "TemplateMatcher", "load_catalog",
    "BillingPipeline", "EmptyCompletionError",
    "create_pipeline", "load_config", "load_from_yaml",
    "AnonymizationResult", "Category", "Detection", "Replacement", "Severity",
    "TemplateGroup", "TemplateItem", "TemplateSuggestion", "WordFlag",
]
__version__ = "0.1.0"
