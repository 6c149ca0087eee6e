"""Tests for the dictionary PDF parser."""

import fitz
import pytest

from vocabpro.importer import DictionaryPDFParser


def make_pdf(lines, per_page=40):
    doc = fitz.open()
    for start in range(0, len(lines), per_page):
        page = doc.new_page()
        for offset, line in enumerate(lines[start:start + per_page]):
            page.insert_text((72, 60 + offset * 16), line, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.mark.parametrize("line, front, ipa", [
    ("abandon /əˈbændən/ verb to leave", "abandon", "/əˈbændən/"),
    ("give up /ɡɪv ˈʌp/", "give up", "/ɡɪv ˈʌp/"),
    ("well-known /ˌwelˈnəʊn/ adj", "well-known", "/ˌwelˈnəʊn/"),
    ("o'clock/əˈklɒk/", "o'clock", "/əˈklɒk/"),
])
def test_parse_line_accepts_word_lines(line, front, ipa):
    entry = DictionaryPDFParser.parse_line(line)

    assert entry.front == front
    assert entry.ipa == ipa


@pytest.mark.parametrize("line", [
    "Page 12",
    "1 abandon /əˈbændən/",
    "/əˈbændən/ abandon",
    "abandon // verb",
    "an example sentence without phonetics",
])
def test_parse_line_rejects_other_lines(line):
    assert DictionaryPDFParser.parse_line(line).front == ""


def test_parse_text_collects_entries_across_pages():
    pages = ["UNIT 1\napple /ˈæp.əl/ noun\n\n", "pear /peə/ noun\nsome text"]

    result = DictionaryPDFParser().parse_text(pages)

    assert [e.front for e in result.entries] == ["apple", "pear"]
    assert result.warnings == []


def test_parse_text_without_entries_warns():
    result = DictionaryPDFParser().parse_text(["nothing here"])

    assert result.entries == []
    assert "Cambridge Dictionary format" in result.warnings[0]


def test_parse_reads_generated_pdf():
    lines = [f"word{chr(97 + i % 26)}{chr(97 + i // 26)} /test/ noun" for i in range(120)]

    result = DictionaryPDFParser().parse(make_pdf(lines))

    assert len(result.entries) == 120
    assert result.entries[0].front == "wordaa"
    assert result.entries[0].ipa == "/test/"


def test_parse_invalid_bytes_returns_warning():
    result = DictionaryPDFParser().parse(b"definitely not a pdf")

    assert result.entries == []
    assert result.warnings


def test_parse_empty_bytes():
    result = DictionaryPDFParser().parse(b"")

    assert result.entries == []
    assert result.warnings == ["The file is empty."]
