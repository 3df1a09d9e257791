"""
Reference-text provider: AlQuran Cloud API.
Fetches a surah once and builds the reference text the recitation is checked against.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests

from core.normalization import tokenize

logger = logging.getLogger(__name__)


class ReferenceFetchError(Exception):
    """The reference source could not be reached or returned an unusable response."""


@dataclass(frozen=True)
class SurahText:
    """One surah's reference text. `words` are normalized tokens of `full_text`."""
    number: int
    name: str
    english_name: str
    ayah_count: int
    full_text: str
    words: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "englishName": self.english_name,
            "ayahCount": self.ayah_count,
            "fullText": self.full_text,
            "words": list(self.words),
            "totalWords": len(self.words),
        }


def build_full_text(ayahs: List[Dict[str, Any]]) -> str:
    """Join ayah texts, each followed by its verse marker "(n)"."""
    parts = []
    for index, ayah in enumerate(ayahs, start=1):
        parts.append(f"{ayah.get('text', '')} ({index})")
    return " ".join(parts).strip()


class QuranApiClient:
    """Client for AlQuran Cloud API with a per-surah cache."""

    BASE_URL = "https://api.alquran.cloud/v1/"

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url or self.BASE_URL
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: Dict[int, SurahText] = {}
        self._lock = threading.Lock()

    def get_surah(self, surah_number: int) -> SurahText:
        """
        Fetch one surah and build its reference text.

        Raises:
            ReferenceFetchError: network failure or non-200 API code.
        """
        if not 1 <= surah_number <= 114:
            raise ValueError(f"Surah number must be 1-114, got {surah_number}")
        with self._lock:
            cached = self._cache.get(surah_number)
        if cached is not None:
            return cached

        data = self._make_request(f"surah/{surah_number}")
        ayahs = data.get("ayahs") or []
        if not ayahs:
            raise ReferenceFetchError(f"Surah {surah_number} has no ayahs in API response")
        full_text = build_full_text(ayahs)
        surah = SurahText(
            number=int(data.get("number", surah_number)),
            name=data.get("name", ""),
            english_name=data.get("englishName", ""),
            ayah_count=len(ayahs),
            full_text=full_text,
            words=tuple(tokenize(full_text)),
        )
        with self._lock:
            self._cache[surah_number] = surah
        logger.info("Loaded surah %d (%s): %d words", surah.number, surah.english_name, len(surah.words))
        return surah

    def list_surahs(self) -> List[Dict[str, Any]]:
        """Surah index: number, name, englishName, numberOfAyahs, ..."""
        data = self._make_request("surah")
        if not isinstance(data, list):
            raise ReferenceFetchError("Unexpected surah list response")
        return data

    def _make_request(self, endpoint: str) -> Any:
        url = urljoin(self.base_url, endpoint)
        logger.debug("Making request to: %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Network error accessing AlQuran API: %s", e)
            raise ReferenceFetchError(f"Failed to fetch {endpoint}: {e}") from e

        if payload.get("code") != 200:
            raise ReferenceFetchError(f"API Error: {payload.get('status', 'Unknown error')}")
        return payload.get("data")
