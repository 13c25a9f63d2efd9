# =============================================================================
# bookcopy/services/file_parser.py — Text extraction for DOCX (python-docx)
# and PDF (pypdf) uploads
# =============================================================================

import io

from docx import Document
from pypdf import PdfReader

from bookcopy.core.errors import FileParseError
from bookcopy.utils.logger import logger


def parse_docx(data: bytes) -> str:
    try:
        document = Document(io.BytesIO(data))
    except Exception as e:
        logger.warning("docx_parse_failed", extra={"error": str(e)})
        raise FileParseError("Unable to extract text from the DOCX file.") from e
    return "\n".join(p.text for p in document.paragraphs)


def parse_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        logger.warning("pdf_parse_failed", extra={"error": str(e)})
        raise FileParseError("Unable to extract text from the PDF file.") from e
    return "\n".join(pages)


PARSERS = {
    ".docx": parse_docx,
    ".pdf": parse_pdf,
}


def extract_text(extension: str, data: bytes) -> str:
    parser = PARSERS.get(extension.lower())
    if parser is None:
        raise FileParseError(f"Unsupported file extension: {extension or '(none)'}")
    return parser(data)
