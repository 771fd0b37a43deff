"""Billing pipeline: the glue between the user's task text and the LLM.

Usage:

    pipeline = BillingPipeline.create()

    # Before sending to the provider
    request = pipeline.prepare("draft protective order", case_name="Doe v. Roe")
    request.flags          # flagged words to warn the user about
    request.messages       # OpenAI-format chat messages

    # After receiving the completion
    result = pipeline.finalize(completion_text)
    result.text            # billing entry with identifiable info redacted

Or in one go, with any callable that turns messages into text:

    draft = pipeline.run("draft protective order", complete=my_llm_call)
"""

from __future__ import annotations
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from .anonymizer import Anonymizer, AnonymizerConfig
from .flagged_words import FlaggedWordService
from .templates import TemplateMatcher
from .types import AnonymizationResult, TemplateSuggestion, WordFlag

logger = logging.getLogger(__name__)

Completion = Callable[[list[dict]], str]

SYSTEM_PROMPT = (
    "You are a legal billing assistant that creates professional, detailed billing "
    "entries for law firms. Always respond with a single billing entry line starting "
    'with a time estimate (e.g., "0.6:", "1.2:").'
)

BILLING_PROMPT = """
You are a legal billing assistant drafting time entries for a law firm. Based on the inputs below, write a detailed and professional billing entry suitable for a client invoice.

The format should start with a time estimate (e.g., "0.6:", "1.2:"), and the entry should clearly describe the task performed using formal legal billing language. Avoid vague or generic phrases. Be specific about what was reviewed, drafted, or discussed.

Inputs:
- File Number: {file_number}
- Case Name: {case_name}
- Task Description: {description}

Requirements:
1. Start with a time estimate (e.g., "0.6:", "1.2:")
2. Use formal legal billing language
3. Be specific about tasks performed
4. Avoid vague or generic phrases
5. Include relevant legal terminology
6. Keep entry concise but detailed
7. Focus on the actual work described
{template_context}
Output: Single billing entry line starting with time estimate
"""


class EmptyCompletionError(ValueError):
    """The LLM returned no usable text."""


@dataclass
class PreparedRequest:
    description: str                     # as sent to the LLM
    messages: list[dict]
    flags: list[WordFlag] = field(default_factory=list)
    suggestions: list[TemplateSuggestion] = field(default_factory=list)
    template_context: str = ""
    anonymized_input: bool = False


@dataclass
class BillingDraft:
    entry: str
    flags: list[WordFlag]
    suggestions: list[TemplateSuggestion]
    anonymization: AnonymizationResult

    def to_dict(self) -> dict:
        return {
            "result": self.entry,
            "flags": [f.to_dict() for f in self.flags],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "anonymization": self.anonymization.to_dict(),
        }


@dataclass
class BillingPipeline:
    """Flag check → template context → prompt; completion → anonymize."""

    matcher: TemplateMatcher
    flagged_words: FlaggedWordService
    anonymizer: Anonymizer
    min_description_length: int = 10
    anonymize_input: bool = True

    @classmethod
    def create(cls, *, config: AnonymizerConfig | None = None) -> "BillingPipeline":
        """Factory using the built-in catalog and flagged-word table."""
        return cls(
            matcher=TemplateMatcher(),
            flagged_words=FlaggedWordService(),
            anonymizer=Anonymizer(config),
        )

    def prepare(self, description: str, *, case_name: str = "", file_number: str = "") -> PreparedRequest:
        if not isinstance(description, str) or not description.strip():
            raise ValueError("description is required")
        description = description.strip()

        flags = self.flagged_words.scan(description)
        anonymized = False
        if flags and self.anonymize_input:
            redacted = self.anonymizer.anonymize(description)
            anonymized = redacted.was_modified
            description = redacted.text

        suggestions: list[TemplateSuggestion] = []
        if len(description) >= self.min_description_length:
            suggestions = self.matcher.suggest(description)
        context = self.matcher.format_for_prompt(suggestions, description)

        prompt = BILLING_PROMPT.format(
            file_number=file_number or "Not specified",
            case_name=case_name or "Not specified",
            description=description,
            template_context=context + "\n" if context else "",
        )
        logger.debug(
            "prepared billing prompt: %d chars, %d flag(s), %d template group(s)",
            len(prompt), len(flags), len(suggestions),
        )
        return PreparedRequest(
            description=description,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            flags=flags,
            suggestions=suggestions,
            template_context=context,
            anonymized_input=anonymized,
        )

    def finalize(self, completion: str | None) -> AnonymizationResult:
        """Anonymize the model's billing entry before it goes back to the user."""
        entry = completion.strip() if isinstance(completion, str) else ""
        if not entry:
            raise EmptyCompletionError("No response generated from AI service")
        return self.anonymizer.anonymize(entry)

    def run(
        self,
        description: str,
        complete: Completion,
        *,
        case_name: str = "",
        file_number: str = "",
    ) -> BillingDraft:
        request = self.prepare(description, case_name=case_name, file_number=file_number)
        result = self.finalize(complete(request.messages))
        return BillingDraft(
            entry=result.text,
            flags=request.flags,
            suggestions=request.suggestions,
            anonymization=result,
        )
