import re

from pydantic import BaseModel

SENTENCE_SPLIT = re.compile(r"[.!?]+")


class DocumentAnalysis(BaseModel):
    word_count: int = 0
    character_count: int = 0
    sentence_count: int = 0
    average_word_length: float = 0.0


def analyze_document(extracted_text: str) -> DocumentAnalysis:
    """Basic statistics on extracted text; empty input gives all zeros."""
    text = (extracted_text or "").strip()
    if not text:
        return DocumentAnalysis()
    words = text.split()
    word_count = len(words)
    average_word_length = sum(len(w) for w in words) / word_count if word_count else 0.0
    sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
    return DocumentAnalysis(
        word_count=word_count,
        character_count=len(text),
        sentence_count=len(sentences),
        average_word_length=average_word_length,
    )
