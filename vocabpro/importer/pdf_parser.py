"""Dictionary PDF parser: extracts ``word /ipa/`` entries with PyMuPDF."""

import re
from dataclasses import dataclass, field
from typing import List

import fitz  # PyMuPDF

from ..models import RawEntry
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser

logger = setup_logger(__name__)


@dataclass
class ParseResult:
    """Entries found in a file plus human-readable problems."""
    entries: List[RawEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    detected_language: str = "en"


class DictionaryPDFParser:
    """
    Parse Cambridge-style dictionary PDFs.

    A word line starts with a Latin word (letters, spaces, hyphens,
    apostrophes) followed by an IPA transcription between slashes, e.g.
    ``abandon /əˈbændən/ verb ...``. Definitions and examples are left to the
    enrichment step.
    """

    WORD_LINE_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z\s\-']{0,50}\s*/[^/]+/")
    IPA_PATTERN = re.compile(r"/([^/]+)/")

    def extract_pages(self, data: bytes) -> List[str]:
        """
        Extract plain text per page.

        Raises:
            ValueError: if the bytes are not a readable PDF
        """
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                return [page.get_text("text") for page in doc]
        except Exception as e:
            # PyMuPDF error types differ between releases
            raise ValueError(f"PDF extraction failed: {e}") from e

    @classmethod
    def parse_line(cls, line: str) -> RawEntry:
        """Split a word line into its front and /ipa/; returns an empty front if it is not one."""
        line = line.strip()
        if not cls.WORD_LINE_PATTERN.match(line):
            return RawEntry(front="")

        match = cls.IPA_PATTERN.search(line)
        if not match or not match.group(1).strip():
            return RawEntry(front="")

        word = line[:line.index("/")].strip()
        return RawEntry(
            front=TextParser.normalize_unicode(word),
            ipa=f"/{match.group(1).strip()}/",
        )

    def parse_text(self, pages: List[str]) -> ParseResult:
        """Parse already-extracted page texts."""
        result = ParseResult()

        for page in pages:
            for line in page.split("\n"):
                if not line.strip():
                    continue
                entry = self.parse_line(line)
                if entry.front:
                    result.entries.append(entry)

        if not result.entries:
            result.warnings.append(
                "No valid entries found in PDF. Ensure it follows Cambridge Dictionary format (word /ipa/)."
            )
        return result

    def parse(self, data: bytes) -> ParseResult:
        """
        Parse raw PDF bytes.

        Never raises: failures come back as zero entries and a warning.
        """
        if not data:
            return ParseResult(warnings=["The file is empty."])

        try:
            pages = self.extract_pages(data)
        except ValueError as e:
            logger.error(str(e))
            return ParseResult(warnings=[str(e)])

        result = self.parse_text(pages)
        logger.info(f"Parsed {len(result.entries)} entries from {len(pages)} pages")
        return result
