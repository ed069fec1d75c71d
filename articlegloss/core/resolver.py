"""
ArticleGloss Definition Resolver
Cache-backed lookups against the Free Dictionary API
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

import requests

from .cache import CacheEntry, LookupCache

logger = logging.getLogger(__name__)

DICTIONARY_ENDPOINT = "https://api.dictionaryapi.dev/api/v2/entries/en/"


def extract_first_definition(payload: Any) -> Optional[str]:
    """
    First entry -> first meaning -> first definition, or None

    Args:
        payload: Decoded JSON body of a dictionary response

    Returns:
        Definition string or None if the payload has no usable sense
    """
    if not isinstance(payload, list) or not payload:
        return None

    entry = payload[0]
    if not isinstance(entry, dict):
        return None

    meanings = entry.get('meanings') or []
    if not isinstance(meanings, list) or not meanings or not isinstance(meanings[0], dict):
        return None

    definitions = meanings[0].get('definitions') or []
    if not isinstance(definitions, list) or not definitions or not isinstance(definitions[0], dict):
        return None

    definition = definitions[0].get('definition')
    if isinstance(definition, str) and definition.strip():
        return definition.strip()
    return None


class DefinitionResolver:
    """
    Resolves simple English definitions, one network call per word at most.

    Every outcome, including HTTP errors and transport failures, is committed
    to the cache, so a word is never looked up twice in a session.
    """

    def __init__(self,
                 cache: Optional[LookupCache] = None,
                 session: Optional[requests.Session] = None,
                 endpoint: str = DICTIONARY_ENDPOINT,
                 timeout: int = 10):
        self.cache = cache if cache is not None else LookupCache("dictionary")
        self.session = session or requests.Session()
        self.endpoint = endpoint
        self.timeout = timeout

        self._lock = threading.Lock()
        self._in_flight: Dict[str, Future] = {}
        self.requests_made = 0

    def resolve(self, word: str) -> CacheEntry:
        """
        Look up a word, consulting the cache first

        Args:
            word: Normalized word

        Returns:
            CacheEntry whose definition is None when nothing was found
        """
        key = word.lower()
        entry = self.cache.get(key)
        if entry is not None:
            return entry

        with self._lock:
            entry = self.cache.peek(key)
            if entry is not None:
                return entry
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            return future.result()

        try:
            entry = self._fetch(key)
            self.cache.set(key, entry)
            future.set_result(entry)
        except BaseException as e:
            future.set_exception(e)
            raise
        finally:
            with self._lock:
                self._in_flight.pop(key, None)

        return entry

    def resolve_definition(self, word: str) -> Optional[str]:
        return self.resolve(word).definition

    def prefetch(self, words: Iterable[str], max_workers: int = 8) -> int:
        """
        Warm the cache for several words in parallel

        Args:
            words: Normalized words; duplicates and cached words are skipped
            max_workers: Thread pool size

        Returns:
            Number of words that were not cached before the call
        """
        pending = []
        seen = set()
        for word in words:
            key = word.lower()
            if key in seen or key in self.cache:
                continue
            seen.add(key)
            pending.append(key)

        if not pending:
            return 0

        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as pool:
            list(pool.map(self.resolve, pending))

        logger.debug(f"Prefetched {len(pending)} dictionary lookups")
        return len(pending)

    def _fetch(self, key: str) -> CacheEntry:
        url = self.endpoint + quote(key)
        with self._lock:
            self.requests_made += 1

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Dictionary lookup for '{key}' failed: {e}")
            return CacheEntry(None)

        if not response.ok:
            logger.debug(f"No dictionary entry for '{key}' (HTTP {response.status_code})")
            return CacheEntry(None)

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Malformed dictionary response for '{key}': {e}")
            return CacheEntry(None)

        definition = extract_first_definition(payload)
        if definition is None:
            logger.debug(f"Dictionary response for '{key}' has no definition")
        return CacheEntry(definition)
