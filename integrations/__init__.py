"""
External collaborators of the alignment engine: reference text provider and
suggestion generator.
"""

from integrations.quran_api import QuranApiClient, ReferenceFetchError, SurahText, build_full_text
from integrations.suggestions import SuggestionGenerator, is_fallback, parse_suggestions

__all__ = [
    "QuranApiClient",
    "ReferenceFetchError",
    "SurahText",
    "build_full_text",
    "SuggestionGenerator",
    "is_fallback",
    "parse_suggestions",
]
