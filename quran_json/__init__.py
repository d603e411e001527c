"""
Quran JSON Dataset Generator
============================
Builds the quran-json distribution: whole-corpus documents, per-chapter
files and per-verse files, with translations, transliteration and tajweed.

License: MIT
"""

__version__ = "3.1.2"

__all__ = ["__version__"]
