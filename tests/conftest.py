"""Shared fixtures: a tiny two-chapter corpus and fake remote clients."""

import json
import logging
from pathlib import Path

import pytest

from quran_json.build import QuranBuilder
from quran_json.errors import APIResponseError
from quran_json.tajweed import RetryPolicy, TajweedFetcher

VERSE_COUNTS = {1: 7, 2: 3}

CHAPTERS = {
    "en": [
        {"id": 1, "name": "الفاتحة", "transliteration": "Al-Fatihah",
         "translation": "The Opener", "type": "meccan", "total_verses": 7},
        {"id": 2, "name": "البقرة", "transliteration": "Al-Baqarah",
         "translation": "The Cow", "type": "medinan", "total_verses": 3},
    ],
    "ha": [
        {"id": 1, "name": "الفاتحة", "transliteration": "Al-Fatihah",
         "translation": "Mabudi", "type": "meccan", "total_verses": 7},
        {"id": 2, "name": "البقرة", "transliteration": "Al-Baqarah",
         "translation": "Saniya", "type": "medinan", "total_verses": 3},
    ],
    "yo": [
        {"id": 1, "name": "الفاتحة", "transliteration": "Al-Fatihah",
         "translation": "Ibẹrẹ", "type": "meccan", "total_verses": 7},
        {"id": 2, "name": "البقرة", "transliteration": "Al-Baqarah",
         "translation": "Maalu", "type": "medinan", "total_verses": 3},
    ],
}


def edition(prefix):
    """Edition file content with recognizable text per verse."""
    return {
        str(chapter): [
            {"chapter": chapter, "verse": verse, "text": f"{prefix} {chapter}:{verse}"}
            for verse in range(1, count + 1)
        ]
        for chapter, count in VERSE_COUNTS.items()
    }


def tajweed_text(chapter, verse):
    return f"<tajweed>{chapter}:{verse}</tajweed>"


def rate_limited(chapter=1):
    return APIResponseError(
        f"https://api.alquran.cloud/v1/surah/{chapter}/editions/quran-tajweed",
        429,
        {"code": 429, "status": "Too Many Requests", "message": "API rate limit exceeded"},
    )


def server_error(chapter=1):
    return APIResponseError(
        f"https://api.alquran.cloud/v1/surah/{chapter}/editions/quran-tajweed",
        500,
        {"code": 500, "status": "Internal Server Error", "message": "Something broke"},
    )


class FakeTajweedClient:
    """
    Stands in for QuranAPIClient.get_tajweed.

    ``script`` maps a chapter to outcomes consumed one per call; an outcome
    is either an exception to raise or a list to return. Once a chapter's
    script is used up, correct tajweed text is returned.
    """

    def __init__(self, script=None):
        self.script = {chapter: list(outcomes) for chapter, outcomes in (script or {}).items()}
        self.calls = []

    async def get_tajweed(self, chapter):
        self.calls.append(chapter)
        outcomes = self.script.get(chapter)
        if outcomes:
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return [tajweed_text(chapter, verse) for verse in range(1, VERSE_COUNTS[chapter] + 1)]


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def logger():
    return logging.getLogger("QuranJsonTest")


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    root = tmp_path / "data"
    (root / "chapters").mkdir(parents=True)
    (root / "editions").mkdir()

    for lang, chapters in CHAPTERS.items():
        (root / "chapters" / f"{lang}.json").write_text(
            json.dumps(chapters, ensure_ascii=False), encoding="utf-8"
        )

    files = {
        root / "quran.json": edition("arabic"),
        root / "editions" / "transliteration.json": edition("translit"),
        root / "editions" / "en.json": edition("english"),
        root / "editions" / "ha_gumi.json": edition("hausa"),
        root / "editions" / "yoruba_mikail.json": edition("yoruba"),
    }
    for path, content in files.items():
        path.write_text(json.dumps(content, ensure_ascii=False), encoding="utf-8")

    return root


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "dist"


@pytest.fixture
def make_builder(data_dir, output_dir, logger, sleeper):
    def factory(client=None, **kwargs):
        client = client or FakeTajweedClient()
        fetcher = TajweedFetcher(
            client, RetryPolicy(max_attempts=3), logger=logger, sleep=sleeper
        )
        return QuranBuilder(
            client,
            data_dir=str(data_dir),
            output_dir=str(output_dir),
            fetcher=fetcher,
            logger=logger,
            version="1.2.3",
            **kwargs
        )
    return factory


def load(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))
