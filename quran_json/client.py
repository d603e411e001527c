"""
Remote API Client
=================
Asynchronous HTTP access to the chapter-list API, the editions CDN and the
tajweed API.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import aiohttp

from quran_json.config import Config, setup_logging
from quran_json.errors import APIResponseError, DataCollectionError


# ============================================================================
# Response Cache
# ============================================================================

class ResponseCache:
    """
    URL to payload memo for a single run.

    Created by the caller and handed to the client, so every run (and every
    test) starts from an empty cache.
    """

    def __init__(self):
        self._entries: Dict[str, Any] = {}

    def __contains__(self, key: str) -> bool:
        """Whether a payload is cached for key."""
        return key in self._entries

    def __len__(self) -> int:
        """Number of cached payloads."""
        return len(self._entries)

    def get(self, key: str) -> Any:
        """Cached payload for key, or None."""
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        """Remember the payload fetched for key."""
        self._entries[key] = value


def cache_key(url: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Cache key for a URL and its query parameters, in stable order."""
    if not params:
        return url
    return f"{url}?{urlencode(sorted(params.items()))}"


# ============================================================================
# Payload Normalization
# ============================================================================

def normalize_chapter(chapter: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a quran.com chapter record into the local chapter-list format.

    Args:
        chapter: Chapter entry from the ``chapters`` API

    Returns:
        Chapter metadata as stored under ``data/chapters``
    """
    return {
        "id": chapter["id"],
        "name": chapter["name_arabic"],
        "transliteration": chapter["name_simple"],
        "translation": chapter["translated_name"]["name"],
        "type": "meccan" if chapter["revelation_place"] == "makkah" else "medinan",
        "total_verses": chapter["verses_count"],
    }


def group_edition(verses: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Group a flat edition verse list by chapter number, keeping order."""
    grouped: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for verse in verses:
        grouped[str(verse["chapter"])].append(verse)
    return dict(grouped)


# ============================================================================
# HTTP Client
# ============================================================================

class QuranAPIClient:
    """
    Asynchronous HTTP client for the Quran APIs.

    Handles connection management, retries of transient failures and
    response memoization.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        cache: Optional[ResponseCache] = None
    ):
        """
        Initialize API client.

        Args:
            logger: Logger instance (creates new if None)
            cache: Response cache shared for the lifetime of one run
        """
        self.logger = logger or setup_logging()
        self.cache = cache
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "QuranAPIClient":
        """Create HTTP session on context entry."""
        timeout = aiohttp.ClientTimeout(
            total=Config.API_TIMEOUT,
            connect=Config.API_CONNECT_TIMEOUT
        )

        connector = aiohttp.TCPConnector(
            limit=Config.CONNECTION_LIMIT,
            limit_per_host=Config.CONNECTION_LIMIT_PER_HOST,
            keepalive_timeout=Config.KEEPALIVE_TIMEOUT
        )

        self.session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers={"User-Agent": f"QuranJson/{Config.VERSION}"}
        )

        self.logger.debug("HTTP session initialized")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close session on context exit."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("HTTP session closed")

    async def _request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Issue a single GET request.

        Raises:
            APIResponseError: On any non-200 response
            DataCollectionError: On timeouts and connection errors
        """
        if self.session is None:
            raise DataCollectionError("HTTP session is not open")

        try:
            async with self.session.get(url, params=params) as response:
                if response.status == 200:
                    return await response.json(content_type=None)

                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    payload = await response.text()

                raise APIResponseError(
                    url, response.status, payload, Config.RATE_LIMIT_MESSAGE
                )
        except asyncio.TimeoutError:
            raise DataCollectionError(f"Timeout fetching {url}")
        except aiohttp.ClientError as e:
            raise DataCollectionError(f"Client error fetching {url}: {e}")
        except ValueError as e:
            raise DataCollectionError(f"Invalid JSON response from {url}: {e}")

    async def _make_request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        max_retries: int = Config.MAX_RETRIES
    ) -> Any:
        """
        Make HTTP request with exponential backoff retry.

        Client errors (4xx other than rate limiting) are not retried.

        Args:
            url: Absolute URL
            params: Query parameters
            max_retries: Maximum number of attempts

        Returns:
            Decoded JSON payload

        Raises:
            DataCollectionError: If request fails after all retries
        """
        for attempt in range(max_retries):
            self.logger.debug(f"Request attempt {attempt + 1}/{max_retries}: {url}")

            try:
                return await self._request(url, params)
            except APIResponseError as e:
                if e.status < 500 and not e.is_rate_limited:
                    raise
                self.logger.warning(f"{e} on attempt {attempt + 1}")
            except DataCollectionError as e:
                self.logger.warning(f"{e} on attempt {attempt + 1}")

            if attempt < max_retries - 1:
                sleep_time = Config.RETRY_BACKOFF_BASE ** attempt
                self.logger.info(f"Retrying in {sleep_time}s...")
                await asyncio.sleep(sleep_time)

        raise DataCollectionError(
            f"Failed to fetch data from {url} after {max_retries} attempts"
        )

    async def fetch_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Fetch a JSON document, answering from the run cache when possible."""
        key = cache_key(url, params)
        if self.cache is not None and key in self.cache:
            self.logger.debug(f"Cache hit: {key}")
            return self.cache.get(key)

        data = await self._make_request(url, params)

        if self.cache is not None:
            self.cache.set(key, data)
        return data

    async def get_chapter_list(self, lang: str) -> List[Dict[str, Any]]:
        """
        Fetch chapter metadata with names translated into ``lang``.

        Args:
            lang: quran.com language code (e.g. 'en', 'ha')

        Returns:
            Chapter metadata in local format
        """
        data = await self.fetch_json(Config.CHAPTERS_API_URL, {"language": lang})
        chapters = [normalize_chapter(chapter) for chapter in data["chapters"]]
        self.logger.info(f"Collected {len(chapters)} chapters [{lang}]")
        return chapters

    async def get_edition(self, edition: str) -> Dict[str, List[Dict[str, Any]]]:
        """
        Fetch a full edition and group its verses by chapter.

        Args:
            edition: Edition identifier (e.g. 'eng-ummmuhammad')

        Returns:
            Mapping of chapter number (as string) to its verses
        """
        data = await self.fetch_json(Config.EDITIONS_CDN_URL.format(edition=edition))
        verses = group_edition(data["quran"])
        self.logger.info(f"Collected {len(verses)} chapters of edition [{edition}]")
        return verses

    async def get_tajweed(self, chapter: int) -> List[str]:
        """
        Fetch tajweed-annotated verse text for one chapter.

        Single attempt: retry decisions belong to the caller.

        Args:
            chapter: Chapter number (1-based)

        Returns:
            Tajweed text per verse, in order

        Raises:
            APIResponseError: On a non-200 response
            DataCollectionError: On transport failures or a malformed payload
        """
        url = Config.TAJWEED_API_URL.format(chapter=chapter)
        data = await self._request(url)

        try:
            editions = data.get("data") or []
            ayahs = editions[0].get("ayahs", []) if editions else []
            return [ayah.get("text") for ayah in ayahs]
        except (AttributeError, TypeError, KeyError, IndexError):
            raise DataCollectionError(f"Malformed tajweed payload from {url}")
