"""Text parsing utilities for consistent text processing across the application."""

import html
import re
import unicodedata
from typing import List


class TextParser:
    """
    Centralized text parsing utilities.

    Single source of truth for cleaning enrichment output, composing card
    backs, and normalizing words for deduplication.
    """

    # HTML tag removal pattern
    HTML_TAG_PATTERN = re.compile(r'<[^>]*>')

    # Trailing "Audio: ..." label after sentence punctuation or in front of a link
    AUDIO_LABEL_PATTERN = re.compile(
        r'(?:(?:^|(?<=[.;!?)\]]))\s*audio\s*:|\s*\baudio\s*:\s*(?=(?:https?|ftp)://|www\.)).*$',
        re.IGNORECASE | re.DOTALL,
    )

    # Leading "Example:" label
    EXAMPLE_LABEL_PATTERN = re.compile(r'^\s*example\s*:\s*', re.IGNORECASE)

    # Trailing "Example: ..." fragment inside a definition
    EXAMPLE_FRAGMENT_PATTERN = re.compile(r'\s*\bexample\s*:.*$', re.IGNORECASE | re.DOTALL)

    # Bare URLs
    URL_PATTERN = re.compile(r'(?:https?|ftp)://[^\s<>()\[\]]+|\bwww\.[^\s<>()\[\]]+', re.IGNORECASE)

    # Brackets emptied by the removals above
    EMPTY_BRACKETS_PATTERN = re.compile(r'\(\s*\)|\[\s*\]')

    # Numbered list cleanup pattern
    NUMBERED_LIST_PATTERN = re.compile(r'^\d+[\.\)]\s*')

    # Word list delimiters (hyphen, en dash, em dash, comma)
    WORD_DELIMITER_PATTERN = re.compile(r'[\-–—,]')

    LATIN_LETTER_PATTERN = re.compile(r'[a-zA-Z]')

    # Whitespace normalization pattern
    WHITESPACE_PATTERN = re.compile(r'\s+')

    @classmethod
    def normalize_unicode(cls, text: str) -> str:
        """
        Normalize text to NFC form for consistent Unicode handling.

        Prevents issues with characters like é being represented as
        either a single codepoint (NFC) or base + combining accent (NFD).
        """
        if not text:
            return ""
        return unicodedata.normalize('NFC', str(text))

    @classmethod
    def strip_markup(cls, text: str) -> str:
        """
        Clean a text field returned by an enrichment service.

        Removes HTML-like tags, a trailing "Audio: ..." fragment, an
        "Example:" label and bare URLs, then collapses whitespace.

        Args:
            text: Raw field value (None-safe)

        Returns:
            Cleaned, trimmed text
        """
        if not text:
            return ""

        text = html.unescape(str(text))
        text = cls.HTML_TAG_PATTERN.sub(' ', text)
        text = cls.AUDIO_LABEL_PATTERN.sub('', text)
        text = cls.EXAMPLE_LABEL_PATTERN.sub('', text)
        text = cls.URL_PATTERN.sub('', text)
        text = cls.EMPTY_BRACKETS_PATTERN.sub('', text)
        text = cls.WHITESPACE_PATTERN.sub(' ', text).strip()

        return cls.normalize_unicode(text)

    @classmethod
    def clean_definition(cls, text: str) -> str:
        """Clean a definition and drop any embedded "Example: ..." tail."""
        text = cls.strip_markup(text)
        return cls.EXAMPLE_FRAGMENT_PATTERN.sub('', text).strip()

    @staticmethod
    def compose_back(translation: str, definition: str = "") -> str:
        """
        Build the card back: translation, blank line, parenthesized definition.

        Both arguments are expected to be cleaned already.
        """
        if definition:
            return f"{translation}\n\n({definition})"
        return translation

    @classmethod
    def normalize_key(cls, word: str) -> str:
        """Normalize a word for duplicate detection (trim + lowercase)."""
        return cls.normalize_unicode(word).strip().lower()

    @classmethod
    def extract_word_list(cls, text: str) -> List[str]:
        """
        Turn a free-form word list into unique words, preserving order.

        Each line may carry list numbering ("1.", "2)") and a trailing gloss
        after a dash or comma ("apple - olma"); only the head word is kept.

        Args:
            text: Raw multi-line input

        Returns:
            List of words in first-seen order
        """
        if not text:
            return []

        words: List[str] = []
        seen = set()

        for line in str(text).split('\n'):
            line = cls.NUMBERED_LIST_PATTERN.sub('', line.strip()).strip()
            if not line:
                continue

            head = cls.WORD_DELIMITER_PATTERN.split(line)[0].strip()
            if not head or not cls.LATIN_LETTER_PATTERN.search(head):
                continue

            head = cls.normalize_unicode(head)
            if head not in seen:
                seen.add(head)
                words.append(head)

        return words
