"""
Advisory suggestions for the results page, generated with Google Gemini.

Optional collaborator: without an API key, on an unusable response, or on
any API failure the caller gets a fixed fallback list instead.
"""
import logging
import re
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from core.models import EXTRA, INCORRECT, MISSING

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an experienced Quran teacher providing constructive feedback "
    "to help students improve their recitation."
)

# Used when the model answered but nothing usable could be parsed
DEFAULT_SUGGESTIONS = [
    "🎯 Focus on pronunciation accuracy - review the correct pronunciation of challenging words",
    "📚 Practice with Tajweed rules for better recitation flow",
    "🔄 Try reciting slower to avoid missing or adding extra words",
    "🎧 Listen to professional recitations to improve your rhythm and pronunciation",
    "🕌 Consider practicing with a Quran teacher for personalized guidance",
]

# Used when the model is unavailable or the call failed
ERROR_SUGGESTIONS = [
    "🎯 Focus on pronunciation accuracy and take your time with each word",
    "📚 Review Tajweed rules to improve your recitation technique",
    "🔄 Practice regularly and recite slowly for better accuracy",
    "🎧 Listen to professional recitations for reference",
    "🌟 Keep practicing - improvement comes with consistent effort!",
]

_LIST_ITEM = re.compile(r'^\s*(?:[•\-*]|\d+[.)])\s*')
MIN_SUGGESTION_LENGTH = 10


def is_fallback(suggestions: List[str]) -> bool:
    """True when the list came from the fixed suggestions, not the model."""
    fixed = set(DEFAULT_SUGGESTIONS) | set(ERROR_SUGGESTIONS)
    return bool(suggestions) and all(s in fixed for s in suggestions)


def build_prompt(accuracy: float, error_counts: Dict[str, int]) -> str:
    return (
        "As a Quran recitation teacher, provide 3-5 specific improvement suggestions "
        "for a student with the following performance:\n\n"
        f"- Overall accuracy: {accuracy}%\n"
        f"- Incorrect words: {error_counts.get(INCORRECT, 0)}\n"
        f"- Missing words: {error_counts.get(MISSING, 0)}\n"
        f"- Extra words: {error_counts.get(EXTRA, 0)}\n\n"
        "Focus on practical advice for improving Quran recitation, including Tajweed rules, "
        "pronunciation tips, and memorization techniques. Keep suggestions encouraging and "
        "specific to Arabic/Quranic recitation.\n\n"
        "Format your response as a numbered list with emojis, for example:\n"
        "1. 🎯 Focus on pronunciation accuracy\n"
        "2. 📚 Practice with Tajweed rules\n"
        "etc."
    )


def parse_suggestions(text: str, limit: int = 5) -> List[str]:
    """Keep bullet / numbered lines, strip their markers, drop short fragments."""
    suggestions = []
    for line in (text or "").splitlines():
        if not line.strip() or not _LIST_ITEM.match(line):
            continue
        item = _LIST_ITEM.sub("", line, count=1).strip()
        if len(item) > MIN_SUGGESTION_LENGTH:
            suggestions.append(item)
    return suggestions[:limit]


class SuggestionGenerator:
    """Wraps a Gemini model; `model` may be injected (tests, other providers)."""

    def __init__(
        self,
        api_key: str = "",
        model_name: str = "gemini-1.5-flash",
        max_suggestions: int = 5,
        model: Optional[Any] = None,
    ):
        self.max_suggestions = max(1, max_suggestions)
        self.model = model
        if self.model is None and api_key:
            try:
                genai.configure(api_key=api_key)
                self.model = genai.GenerativeModel(model_name, system_instruction=SYSTEM_INSTRUCTION)
                logger.info("Gemini model initialized: %s", model_name)
            except Exception as e:
                logger.error("Error initializing Gemini: %s", e)
                self.model = None
        elif self.model is None:
            logger.warning("Google API key not found; using fallback suggestions")

    @property
    def available(self) -> bool:
        return self.model is not None

    def generate(self, accuracy: float, error_counts: Dict[str, int]) -> List[str]:
        """Return up to max_suggestions suggestions; never raises."""
        if not self.available:
            return ERROR_SUGGESTIONS[: self.max_suggestions]
        try:
            response = self.model.generate_content(build_prompt(accuracy, error_counts))
            suggestions = parse_suggestions(response.text, limit=self.max_suggestions)
        except Exception as e:
            logger.warning("Error generating AI suggestions: %s", e)
            return ERROR_SUGGESTIONS[: self.max_suggestions]
        if not suggestions:
            return DEFAULT_SUGGESTIONS[: self.max_suggestions]
        return suggestions
