import re
from typing import List, Optional

# Harakat, sukun, shadda, superscript alif and Quranic annotation marks
_DIACRITICS = re.compile(r'[\u064B-\u065F\u0670\u06D6-\u06ED]')
_TATWEEL = re.compile(r'\u0640')
_ALIF_FORMS = re.compile(r'[\u0623\u0625\u0622\u0671]')
_YA_FORMS = re.compile(r'[\u0649\u0626]')
# Verse markers like "(12)"; \d also covers Arabic-Indic digits
_VERSE_MARKER = re.compile(r'\(\s*\d+\s*\)')
_DIGITS = re.compile(r'\d+')
_WHITESPACE = re.compile(r'\s+')

ALIF = '\u0627'
YA = '\u064A'
TA_MARBUTA = '\u0629'
HA = '\u0647'


def normalize_arabic(text: Optional[str]) -> str:
    """
    Normalize Arabic/Quranic text for word comparison.
    Strips diacritics and tatweel, folds Alif/Ya/Ta Marbuta variants,
    drops verse numbers and digits, collapses whitespace. Idempotent.
    """
    if not text:
        return ""

    text = _DIACRITICS.sub('', text)
    text = _TATWEEL.sub('', text)

    # أ إ آ ٱ → ا ; ى ئ → ي ; ة → ه
    text = _ALIF_FORMS.sub(ALIF, text)
    text = _YA_FORMS.sub(YA, text)
    text = text.replace(TA_MARBUTA, HA)

    text = _VERSE_MARKER.sub('', text)
    text = _DIGITS.sub('', text)

    text = _WHITESPACE.sub(' ', text)
    return text.strip()


def tokenize(text: Optional[str]) -> List[str]:
    """Normalize and split into words (empty tokens dropped)."""
    return normalize_arabic(text).split()
