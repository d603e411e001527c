"""API client helpers: payload normalization, error classification, caching."""

import asyncio

import pytest

from quran_json.client import (
    QuranAPIClient,
    ResponseCache,
    cache_key,
    group_edition,
    normalize_chapter,
)
from quran_json.config import Config
from quran_json.errors import APIResponseError, DataCollectionError
from quran_json.tajweed import RetryPolicy, TajweedFetcher


class StubClient(QuranAPIClient):
    """QuranAPIClient with the network replaced by canned payloads."""

    def __init__(self, payloads, logger, cache=None):
        super().__init__(logger=logger, cache=cache)
        self.payloads = payloads
        self.requested = []

    async def _request(self, url, params=None):
        self.requested.append(cache_key(url, params))
        return self.payloads[url]


def test_normalize_chapter_maps_revelation_place():
    chapter = {
        "id": 2,
        "name_arabic": "البقرة",
        "name_simple": "Al-Baqarah",
        "translated_name": {"language_name": "english", "name": "The Cow"},
        "revelation_place": "madinah",
        "verses_count": 286,
    }

    assert normalize_chapter(chapter) == {
        "id": 2,
        "name": "البقرة",
        "transliteration": "Al-Baqarah",
        "translation": "The Cow",
        "type": "medinan",
        "total_verses": 286,
    }
    assert normalize_chapter({**chapter, "revelation_place": "makkah"})["type"] == "meccan"


def test_group_edition_keeps_verse_order():
    verses = [
        {"chapter": 1, "verse": 1, "text": "a"},
        {"chapter": 1, "verse": 2, "text": "b"},
        {"chapter": 2, "verse": 1, "text": "c"},
    ]

    grouped = group_edition(verses)

    assert list(grouped) == ["1", "2"]
    assert [v["text"] for v in grouped["1"]] == ["a", "b"]


def test_rate_limit_detection():
    url = "https://api.alquran.cloud/v1/surah/1/editions/quran-tajweed"

    assert APIResponseError(url, 429, {"message": "API rate limit exceeded"}).is_rate_limited
    assert APIResponseError(url, 403, {"data": "API rate limit exceeded. Slow down."}).is_rate_limited
    assert APIResponseError(url, 429, None).is_rate_limited
    assert not APIResponseError(url, 404, {"message": "Not found"}).is_rate_limited
    assert not APIResponseError(url, 500, "<html>oops</html>").is_rate_limited


def test_cache_key_sorts_params():
    assert cache_key("https://x/chapters") == "https://x/chapters"
    assert cache_key("https://x/chapters", {"language": "en"}) == "https://x/chapters?language=en"


def test_fetch_json_uses_run_cache(logger):
    url = Config.EDITIONS_CDN_URL.format(edition="eng-ummmuhammad")
    payloads = {url: {"quran": [{"chapter": 1, "verse": 1, "text": "In the name"}]}}
    cache = ResponseCache()
    client = StubClient(payloads, logger, cache=cache)

    first = asyncio.run(client.get_edition("eng-ummmuhammad"))
    second = asyncio.run(client.get_edition("eng-ummmuhammad"))

    assert first == second == {"1": [{"chapter": 1, "verse": 1, "text": "In the name"}]}
    assert client.requested == [url]
    assert url in cache and len(cache) == 1


def test_separate_caches_do_not_share_entries(logger):
    payloads = {Config.CHAPTERS_API_URL: {"chapters": []}}

    one = StubClient(payloads, logger, cache=ResponseCache())
    two = StubClient(payloads, logger, cache=ResponseCache())
    asyncio.run(one.get_chapter_list("en"))
    asyncio.run(two.get_chapter_list("en"))

    assert len(one.requested) == len(two.requested) == 1


def test_get_tajweed_extracts_first_edition_ayahs(logger):
    url = Config.TAJWEED_API_URL.format(chapter=112)
    payloads = {url: {
        "code": 200,
        "data": [{"ayahs": [{"numberInSurah": n, "text": f"t{n}"} for n in range(1, 5)]}],
    }}

    assert asyncio.run(StubClient(payloads, logger).get_tajweed(112)) == ["t1", "t2", "t3", "t4"]


def test_get_tajweed_without_editions_is_empty(logger):
    url = Config.TAJWEED_API_URL.format(chapter=1)

    assert asyncio.run(StubClient({url: {"code": 200, "data": []}}, logger).get_tajweed(1)) == []


@pytest.mark.parametrize("payload", [
    None,
    {"code": 200, "data": "Something went wrong"},
    {"code": 200, "data": [{"ayahs": None}]},
])
def test_malformed_tajweed_payload_degrades_to_empty(payload, logger, sleeper):
    url = Config.TAJWEED_API_URL.format(chapter=1)
    client = StubClient({url: payload}, logger)

    with pytest.raises(DataCollectionError):
        asyncio.run(client.get_tajweed(1))

    fetcher = TajweedFetcher(client, RetryPolicy(), logger=logger, sleep=sleeper)
    assert asyncio.run(fetcher.fetch(1)) == []
    assert sleeper.delays == []
