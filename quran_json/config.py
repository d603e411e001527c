"""
Configuration & Logging
=======================
Centralized constants for the ingestion and generation stages, plus the
shared logging setup.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Tuple

from quran_json import __version__


# ============================================================================
# Language Table
# ============================================================================

@dataclass(frozen=True)
class Language:
    """A translation language as it appears in the dataset."""
    code: str           # output code, e.g. 'ha_gumi'
    chapter_list: str   # quran.com language for chapter names, e.g. 'ha'
    edition: str        # fawazahmed0 edition identifier


# ============================================================================
# Configuration & Constants
# ============================================================================

class Config:
    """Centralized configuration management."""

    # API Configuration
    TAJWEED_API_URL = "https://api.alquran.cloud/v1/surah/{chapter}/editions/quran-tajweed"
    CHAPTERS_API_URL = "https://api.quran.com/api/v4/chapters"
    EDITIONS_CDN_URL = "https://cdn.jsdelivr.net/gh/fawazahmed0/quran-api@1/editions/{edition}.json"
    API_TIMEOUT = 60
    API_CONNECT_TIMEOUT = 30
    MAX_RETRIES = 3

    # HTTP Configuration
    CONNECTION_LIMIT = 10
    CONNECTION_LIMIT_PER_HOST = 5
    KEEPALIVE_TIMEOUT = 30

    # Tajweed rate limiting
    TAJWEED_REQUEST_DELAY = 0.5
    RATE_LIMIT_MESSAGE = "API rate limit exceeded"
    RATE_LIMIT_DELAY = 5
    RATE_LIMIT_MAX_ATTEMPTS = 6
    RETRY_BACKOFF_BASE = 2

    # Quran Constants
    TOTAL_SURAHS = 114

    # Editions
    BASE_EDITION = "ara-quranuthmanienc"
    TRANSLITERATION = "transliteration"
    TRANSLITERATION_EDITION = "ara-quran-la"
    DEFAULT_CHAPTER_LIST = "en"
    LANGUAGES: Tuple[Language, ...] = (
        Language("en", "en", "eng-ummmuhammad"),
        Language("ha_gumi", "ha", "hau-abubakarmahmoud"),
        Language("yoruba_mikail", "yo", "yor-shaykhaburahima"),
    )
    VERSE_TRANSLATION_LANGUAGES: Tuple[str, ...] = ("ha_gumi", "yoruba_mikail")

    # File Configuration
    DATA_DIR = "data"
    DIST_DIR = "dist"
    VERSE_BATCH_SIZE = 100
    LOG_FILE = "quran_json.log"

    # Distribution
    PACKAGE_NAME = "quran-json"
    CDN_LINK_TEMPLATE = (
        "https://cdn.jsdelivr.net/npm/{package}@{version}/dist/chapters/{filename}"
    )

    # Version
    VERSION = __version__


# ============================================================================
# Logging Configuration
# ============================================================================

def setup_logging(log_file: str = Config.LOG_FILE) -> logging.Logger:
    """
    Configure logging system with file and console handlers.

    Args:
        log_file: Path to log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("QuranJson")
    logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
