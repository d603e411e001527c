"""
Dataset Generation
==================
Builds the distributable dataset from the locally cached sources.

Steps:
    1. Assemble one document per language (plus the base and the
       transliteration pseudo-language), fetching tajweed per chapter.
    2. Merge transliteration into every other document.
    3. Write per-chapter files and chapter indexes.
    4. Write per-verse files with translations in every language.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from quran_json.client import QuranAPIClient
from quran_json.config import Config, Language, setup_logging
from quran_json.errors import AlignmentError, QuranJsonError
from quran_json.models import (
    Chapter,
    ChapterSummary,
    LanguageDocument,
    RevelationType,
    Verse,
    VerseProjection,
)
from quran_json.storage import empty_dir, read_json, write_json
from quran_json.tajweed import TajweedFetcher


# ============================================================================
# Alignment & Projection Helpers
# ============================================================================

def check_alignment(chapter: int, expected: int, sources: Dict[str, Sequence]) -> None:
    """
    Make sure every positional source has exactly ``expected`` verses.

    Args:
        chapter: Chapter number, for the error message
        expected: Verse count every source must have
        sources: Source name to its verse sequence

    Raises:
        AlignmentError: On the first source with a different length
    """
    for source, verses in sources.items():
        if len(verses) != expected:
            raise AlignmentError(chapter, source, expected, len(verses))


def check_documents_aligned(base: LanguageDocument, other: LanguageDocument, source: str) -> None:
    """Chapter by chapter, ``other`` must have the same shape as ``base``."""
    if len(other.chapters) != len(base.chapters):
        raise AlignmentError(None, source, len(base.chapters), len(other.chapters))

    for base_chapter, chapter in zip(base.chapters, other.chapters):
        check_alignment(
            base_chapter.id, len(base_chapter.verses), {source: chapter.verses}
        )


def merge_transliteration(
    document: LanguageDocument,
    transliteration: LanguageDocument
) -> LanguageDocument:
    """
    Copy transliteration text into every verse of ``document``.

    Verses are matched by chapter position and verse position.

    Args:
        document: Language document to enrich
        transliteration: Document generated for the transliteration pseudo-language

    Returns:
        New document whose verses all carry ``transliteration``
    """
    check_documents_aligned(document, transliteration, Config.TRANSLITERATION)

    chapters = tuple(
        Chapter(
            id=chapter.id,
            name=chapter.name,
            transliteration=chapter.transliteration,
            type=chapter.type,
            total_verses=chapter.total_verses,
            translation=chapter.translation,
            verses=tuple(
                Verse(
                    id=verse.id,
                    text=verse.text,
                    tajweed=verse.tajweed,
                    translation=verse.translation,
                    transliteration=source_verse.transliteration,
                )
                for verse, source_verse in zip(chapter.verses, source_chapter.verses)
            ),
        )
        for chapter, source_chapter in zip(document.chapters, transliteration.chapters)
    )
    return LanguageDocument(lang=document.lang, chapters=chapters)


def chapter_filename(chapter_id: int, lang: Optional[str] = None) -> str:
    """Path of a chapter file relative to dist/chapters."""
    return f"{lang}/{chapter_id}.json" if lang else f"{chapter_id}.json"


def chapter_link(filename: str, version: str = Config.VERSION) -> str:
    """Public CDN URL of a per-chapter file."""
    return Config.CDN_LINK_TEMPLATE.format(
        package=Config.PACKAGE_NAME, version=version, filename=filename
    )


def build_chapter_index(
    chapters: Iterable[Chapter],
    lang: Optional[str] = None,
    version: str = Config.VERSION
) -> List[Dict[str, Any]]:
    """Chapter summaries (no verses) with a link to each chapter file."""
    index = []
    for chapter in chapters:
        entry = chapter.summary()
        entry["link"] = chapter_link(chapter_filename(chapter.id, lang), version)
        index.append(entry)
    return index


def project_verses(
    base: LanguageDocument,
    translated: Sequence[LanguageDocument]
) -> List[VerseProjection]:
    """
    Flatten the base document into globally numbered verses.

    Every verse gets the translation text from each translated document at
    the same position, plus a summary of its chapter with the chapter name
    in each language.

    Args:
        base: Base (untranslated) document, transliteration already merged
        translated: Translated documents to embed

    Returns:
        Verse projections numbered from 1
    """
    for document in translated:
        check_documents_aligned(base, document, document.lang or "base")

    langs = [document.lang for document in translated]
    projections = []
    verse_id = 1

    for chapter_idx, chapter in enumerate(base.chapters):
        summary = ChapterSummary(
            id=chapter.id,
            name=chapter.name,
            transliteration=chapter.transliteration,
            type=chapter.type,
            translations={
                lang: document.chapters[chapter_idx].translation
                for lang, document in zip(langs, translated)
            },
        )

        for verse_idx, verse in enumerate(chapter.verses):
            projections.append(VerseProjection(
                id=verse_id,
                number=verse.id,
                text=verse.text,
                chapter=summary,
                translations={
                    lang: document.chapters[chapter_idx].verses[verse_idx].translation
                    for lang, document in zip(langs, translated)
                },
                transliteration=verse.transliteration,
            ))
            verse_id += 1

    return projections


def chunked(items: Sequence, size: int) -> List[Sequence]:
    """Split items into consecutive slices of at most size."""
    return [items[i:i + size] for i in range(0, len(items), size)]


# ============================================================================
# Builder
# ============================================================================

class QuranBuilder:
    """
    Generates every output artifact of the dataset.

    Coordinates document assembly, tajweed fetching and materialization.
    """

    def __init__(
        self,
        client,
        data_dir: str = Config.DATA_DIR,
        output_dir: str = Config.DIST_DIR,
        pretty: bool = False,
        languages: Sequence[Language] = Config.LANGUAGES,
        verse_languages: Sequence[str] = Config.VERSE_TRANSLATION_LANGUAGES,
        fetcher: Optional[TajweedFetcher] = None,
        logger: Optional[logging.Logger] = None,
        version: str = Config.VERSION
    ):
        """
        Initialize builder.

        Args:
            client: Object with an async ``get_tajweed(chapter)``
            data_dir: Directory holding the downloaded sources
            output_dir: Directory the dataset is written to
            pretty: Indent JSON output
            languages: Translation languages to generate
            verse_languages: Language codes embedded in per-verse files
            fetcher: Tajweed fetcher (built around ``client`` if None)
            logger: Logger instance
            version: Package version used in chapter links
        """
        self.data_dir = Path(data_dir)
        self.output_dir = Path(output_dir)
        self.pretty = pretty
        self.languages = {language.code: language for language in languages}
        self.verse_languages = list(verse_languages)
        self.logger = logger or setup_logging()
        self.fetcher = fetcher or TajweedFetcher(client, logger=self.logger)
        self.version = version

    def _chapter_list_path(self, lang: Optional[str]) -> Path:
        if lang is None or lang == Config.TRANSLITERATION:
            chapter_list = Config.DEFAULT_CHAPTER_LIST
        else:
            chapter_list = self.languages[lang].chapter_list
        return self.data_dir / "chapters" / f"{chapter_list}.json"

    async def generate_quran(self, lang: Optional[str] = None) -> LanguageDocument:
        """
        Assemble and write the whole corpus for one language.

        Args:
            lang: Language code, None for the base text, or 'transliteration'

        Returns:
            The assembled document

        Raises:
            AlignmentError: If a source disagrees with the chapter's verse count
        """
        filename = f"quran_{lang}.json" if lang else "quran.json"
        self.logger.info(f"+ Generating {filename}...")

        chapters_meta = read_json(self._chapter_list_path(lang))
        quran = read_json(self.data_dir / "quran.json")
        trans = read_json(self.data_dir / "editions" / f"{lang}.json") if lang else None

        text_field = "transliteration" if lang == Config.TRANSLITERATION else "translation"
        chapters = []

        for item in chapters_meta:
            chapter_id = item["id"]
            base_verses = quran.get(str(chapter_id), [])
            trans_verses = trans.get(str(chapter_id), []) if trans is not None else None

            tajweeds = await self.fetcher.fetch(chapter_id)

            sources = {"base text": base_verses}
            if trans_verses is not None:
                sources[f"edition '{lang}'"] = trans_verses
            if tajweeds:
                sources["tajweed"] = tajweeds
            check_alignment(chapter_id, item["total_verses"], sources)

            verses = []
            for idx, source in enumerate(base_verses):
                extra = {}
                if trans_verses is not None:
                    extra[text_field] = trans_verses[idx]["text"]
                verses.append(Verse(
                    id=source["verse"],
                    text=source["text"],
                    tajweed=(tajweeds[idx] or None) if tajweeds else None,
                    **extra
                ))

            chapters.append(Chapter(
                id=chapter_id,
                name=item["name"],
                transliteration=item["transliteration"],
                type=RevelationType(item["type"]),
                total_verses=item["total_verses"],
                translation=item.get("translation") if lang is not None else None,
                verses=tuple(verses),
            ))

        document = LanguageDocument(lang=lang, chapters=tuple(chapters))

        await write_json(self.output_dir / filename, document.to_list(), self.pretty)

        self.logger.info(f"✓ {filename} generated successfully!")
        return document

    async def generate_by_chapter(self, document: LanguageDocument) -> List[Dict[str, Any]]:
        """
        Write one file per chapter and the chapter index for a language.

        Args:
            document: Finished language document

        Returns:
            The chapter index that was written
        """
        chapters_dir = self.output_dir / "chapters"
        lang = document.lang

        async def write_chapter(chapter: Chapter):
            filename = chapter_filename(chapter.id, lang)
            self.logger.debug(f"+ Generating chapter: {filename}...")
            await write_json(chapters_dir / filename, chapter.to_dict(), self.pretty)

        await asyncio.gather(*(write_chapter(chapter) for chapter in document.chapters))

        index = build_chapter_index(document.chapters, lang, self.version)
        index_filename = f"{lang}/index.json" if lang else "index.json"
        await write_json(chapters_dir / index_filename, index, self.pretty)

        self.logger.info(f"✓ {len(document.chapters)} chapters written for [{lang or 'base'}]")
        return index

    async def generate_by_verses(
        self,
        base: LanguageDocument,
        translated: Sequence[LanguageDocument]
    ) -> int:
        """
        Write one file per verse, numbered across the corpus.

        Writes happen in batches of ``Config.VERSE_BATCH_SIZE``; each batch
        completes before the next starts.

        Args:
            base: Base document with transliteration merged
            translated: Documents whose translations are embedded

        Returns:
            Number of verse files written
        """
        verses_dir = self.output_dir / "verses"
        projections = project_verses(base, translated)

        for batch in chunked(projections, Config.VERSE_BATCH_SIZE):
            for verse in batch:
                self.logger.debug(f"+ Generating verse: {verse.id}.json...")
            await asyncio.gather(*(
                write_json(verses_dir / f"{verse.id}.json", verse.to_dict(), self.pretty)
                for verse in batch
            ))

        self.logger.info(f"✓ {len(projections)} verses written")
        return len(projections)

    async def build(self) -> Dict[Optional[str], LanguageDocument]:
        """
        Run the complete generation.

        Returns:
            Final documents keyed by language code (None for the base)
        """
        empty_dir(self.output_dir)

        lang_codes: List[Optional[str]] = [None, *self.languages]

        transliteration, *documents = await asyncio.gather(*(
            self.generate_quran(lang)
            for lang in [Config.TRANSLITERATION, *lang_codes]
        ))

        qurans = [merge_transliteration(document, transliteration) for document in documents]

        await asyncio.gather(*(self.generate_by_chapter(quran) for quran in qurans))

        by_lang = {quran.lang: quran for quran in qurans}
        await self.generate_by_verses(
            by_lang[None], [by_lang[lang] for lang in self.verse_languages]
        )

        return by_lang


# ============================================================================
# Entry Point
# ============================================================================

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line options."""
    parser = argparse.ArgumentParser(description="Generate the quran-json dataset.")
    parser.add_argument(
        "--pretty", action="store_true", help="Write indented JSON instead of compact JSON."
    )
    return parser.parse_args(argv)


async def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    logger = setup_logging()
    start_time = datetime.now()

    async with QuranAPIClient(logger) as client:
        builder = QuranBuilder(client, pretty=args.pretty, logger=logger)
        documents = await builder.build()

    duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"✓ Done: {len(documents)} languages, "
        f"{documents[None].total_verses} verses in {duration:.2f}s"
    )


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Console script: run main, log any failure and exit 1."""
    try:
        asyncio.run(main(argv))
    except KeyboardInterrupt:
        print("\n\n Build interrupted by user")
        sys.exit(1)
    except QuranJsonError as e:
        setup_logging().error(f"Build failed: {e}")
        sys.exit(1)
    except Exception as e:
        setup_logging().error(f"Build failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
