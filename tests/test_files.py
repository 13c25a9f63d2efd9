from __future__ import annotations

import io

import pytest
from pypdf import PdfWriter

from bookcopy.core.errors import FileParseError
from bookcopy.services.file_analysis import DocumentAnalysis, analyze_document
from bookcopy.services.file_parser import extract_text, parse_docx, parse_pdf
from bookcopy.utils.file_utils import (
    DOCX_MIME_TYPE,
    PDF_MIME_TYPE,
    get_file_extension,
    validate_uploaded_file,
)
from tests.conftest import make_docx

MB = 1024 * 1024


def test_analyze_empty_text_is_all_zeros() -> None:
    assert analyze_document("   \n ") == DocumentAnalysis()


def test_analyze_counts_words_sentences_and_characters() -> None:
    result = analyze_document("  Hello world. How are you?  ")
    assert result.word_count == 5
    assert result.sentence_count == 2
    assert result.character_count == len("Hello world. How are you?")
    assert result.average_word_length == pytest.approx(21 / 5)


def test_analyze_collapses_repeated_punctuation() -> None:
    assert analyze_document("Wait... What?! Really").sentence_count == 3


def test_validate_accepts_docx_and_pdf() -> None:
    assert validate_uploaded_file(10, DOCX_MIME_TYPE, MB).valid
    assert validate_uploaded_file(10, PDF_MIME_TYPE, MB).valid


def test_validate_rejects_oversized_file() -> None:
    result = validate_uploaded_file(31 * MB, PDF_MIME_TYPE, 30 * MB)
    assert not result.valid
    assert "30MB" in result.error


@pytest.mark.parametrize("mimetype", ["text/plain", "", None])
def test_validate_rejects_other_types(mimetype: str | None) -> None:
    result = validate_uploaded_file(10, mimetype, MB)
    assert not result.valid
    assert "DOCX or PDF" in result.error


@pytest.mark.parametrize(
    "name, expected",
    [("Book.DOCX", ".docx"), ("draft.final.pdf", ".pdf"), ("README", ""), (None, "")],
)
def test_get_file_extension(name: str | None, expected: str) -> None:
    assert get_file_extension(name) == expected


def test_parse_docx_joins_paragraphs() -> None:
    data = make_docx("Capitolo uno.", "Era una notte buia.")
    assert parse_docx(data) == "Capitolo uno.\nEra una notte buia."


def test_parse_docx_rejects_garbage() -> None:
    with pytest.raises(FileParseError):
        parse_docx(b"definitely not a zip archive")


def test_parse_pdf_blank_page_has_no_text() -> None:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buf = io.BytesIO()
    writer.write(buf)
    assert parse_pdf(buf.getvalue()).strip() == ""


def test_parse_pdf_rejects_garbage() -> None:
    with pytest.raises(FileParseError):
        parse_pdf(b"%PDF-nope")


def test_extract_text_dispatches_on_extension() -> None:
    assert extract_text(".DOCX", make_docx("Ciao")) == "Ciao"
    with pytest.raises(FileParseError):
        extract_text(".txt", b"plain text")
