"""
Source Download
===============
Fetches chapter metadata and full editions into ``data/`` once. A file that
already exists is never fetched again; ``--clean`` starts from scratch.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from quran_json.client import QuranAPIClient, ResponseCache
from quran_json.config import Config, Language, setup_logging
from quran_json.errors import QuranJsonError
from quran_json.storage import empty_dir, write_json


class SourceDownloader:
    """Downloads every source the builder reads."""

    def __init__(
        self,
        client,
        data_dir: str = Config.DATA_DIR,
        languages: Sequence[Language] = Config.LANGUAGES,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize downloader.

        Args:
            client: Object with async ``get_chapter_list`` and ``get_edition``
            data_dir: Directory the sources are cached in
            languages: Translation languages to download
            logger: Logger instance
        """
        self.client = client
        self.data_dir = Path(data_dir)
        self.languages = list(languages)
        self.logger = logger or setup_logging()

    async def download_chapter_list(self, lang: str) -> bool:
        """
        Download chapter metadata in one language.

        Returns:
            True if the file was downloaded, False if it was already cached
        """
        path = self.data_dir / "chapters" / f"{lang}.json"
        if path.exists():
            return False

        self.logger.info(f"+ Downloading chapter list in [{lang}]...")
        chapters = await self.client.get_chapter_list(lang)
        await write_json(path, chapters, pretty=True)
        return True

    async def download_edition(self, edition: str, path: Path) -> bool:
        """
        Download a full edition grouped by chapter.

        Returns:
            True if the file was downloaded, False if it was already cached
        """
        if path.exists():
            return False

        self.logger.info(f"+ Downloading Quran edition [{edition}]...")
        verses = await self.client.get_edition(edition)
        await write_json(path, verses, pretty=True)
        return True

    async def download_all(self, clean: bool = False) -> None:
        """Download chapter lists first, then every edition."""
        if clean:
            empty_dir(self.data_dir)

        chapter_lists = sorted(
            {Config.DEFAULT_CHAPTER_LIST} | {language.chapter_list for language in self.languages}
        )
        await asyncio.gather(*(self.download_chapter_list(lang) for lang in chapter_lists))

        editions_dir = self.data_dir / "editions"
        await asyncio.gather(
            self.download_edition(Config.BASE_EDITION, self.data_dir / "quran.json"),
            self.download_edition(
                Config.TRANSLITERATION_EDITION,
                editions_dir / f"{Config.TRANSLITERATION}.json"
            ),
            *(
                self.download_edition(language.edition, editions_dir / f"{language.code}.json")
                for language in self.languages
            )
        )


# ============================================================================
# Entry Point
# ============================================================================

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line options."""
    parser = argparse.ArgumentParser(description="Download quran-json sources.")
    parser.add_argument(
        "--clean", action="store_true", help="Remove previously downloaded data first."
    )
    return parser.parse_args(argv)


async def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    logger = setup_logging()

    async with QuranAPIClient(logger, cache=ResponseCache()) as client:
        await SourceDownloader(client, logger=logger).download_all(clean=args.clean)

    logger.info("✓ Done")


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Console script: run main, log any failure and exit 1."""
    try:
        asyncio.run(main(argv))
    except KeyboardInterrupt:
        print("\n\n Download interrupted by user")
        sys.exit(1)
    except QuranJsonError as e:
        setup_logging().error(f"Download failed: {e}")
        sys.exit(1)
    except Exception as e:
        setup_logging().error(f"Download failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
