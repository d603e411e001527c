"""
Data Models
===========
Immutable records for chapters, verses and the documents built from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from quran_json.config import Config


class RevelationType(Enum):
    """Revelation type enumeration."""
    MECCAN = "meccan"
    MEDINAN = "medinan"


@dataclass(frozen=True)
class Verse:
    """Immutable verse data model."""
    id: int
    text: str
    tajweed: Optional[str] = None
    translation: Optional[str] = None
    transliteration: Optional[str] = None

    def __post_init__(self):
        """Validate verse data after initialization."""
        if self.id < 1:
            raise ValueError(f"Invalid verse number: {self.id}")

    def to_dict(self) -> Dict[str, Any]:
        """Verse as written to JSON."""
        # tajweed stays null when missing, the optional texts are dropped
        data: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "tajweed": self.tajweed,
        }
        if self.translation is not None:
            data["translation"] = self.translation
        if self.transliteration is not None:
            data["transliteration"] = self.transliteration
        return data


@dataclass(frozen=True)
class Chapter:
    """Immutable chapter model with its verses in order."""
    id: int
    name: str
    transliteration: str
    type: RevelationType
    total_verses: int
    translation: Optional[str] = None
    verses: Tuple[Verse, ...] = ()

    def __post_init__(self):
        """Validate chapter data after initialization."""
        if self.id < 1 or self.id > Config.TOTAL_SURAHS:
            raise ValueError(f"Invalid surah number: {self.id}")
        if self.total_verses < 1:
            raise ValueError(f"Invalid verses count: {self.total_verses}")

    def summary(self) -> Dict[str, Any]:
        """Chapter fields without verses, in output order."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "transliteration": self.transliteration,
        }
        if self.translation is not None:
            data["translation"] = self.translation
        data["type"] = self.type.value
        data["total_verses"] = self.total_verses
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Chapter with its verses as written to JSON."""
        data = self.summary()
        data["verses"] = [verse.to_dict() for verse in self.verses]
        return data


@dataclass(frozen=True)
class LanguageDocument:
    """
    The whole corpus in one language.

    ``lang`` is None for the base document, which carries no translations
    and is the backbone other languages are aligned to.
    """
    lang: Optional[str]
    chapters: Tuple[Chapter, ...] = ()

    @property
    def is_base(self) -> bool:
        """True for the untranslated base document."""
        return self.lang is None

    @property
    def total_verses(self) -> int:
        """Verse count across all chapters."""
        return sum(len(chapter.verses) for chapter in self.chapters)

    def to_list(self) -> List[Dict[str, Any]]:
        """Chapters as written to the whole-corpus JSON file."""
        return [chapter.to_dict() for chapter in self.chapters]


@dataclass(frozen=True)
class ChapterSummary:
    """Parent chapter context embedded in every verse projection."""
    id: int
    name: str
    transliteration: str
    type: RevelationType
    translations: Dict[str, Optional[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Chapter context as embedded in a verse file."""
        return {
            "id": self.id,
            "name": self.name,
            "transliteration": self.transliteration,
            "translations": dict(self.translations),
            "type": self.type.value,
        }


@dataclass(frozen=True)
class VerseProjection:
    """A verse flattened out of its chapter, numbered across the corpus."""
    id: int
    number: int
    text: str
    chapter: ChapterSummary
    translations: Dict[str, Optional[str]] = field(default_factory=dict)
    transliteration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Verse as written to its own file."""
        return {
            "id": self.id,
            "number": self.number,
            "text": self.text,
            "translations": dict(self.translations),
            "transliteration": self.transliteration,
            "chapter": self.chapter.to_dict(),
        }
