"""Paragraph-bounded character chunking for transcripts."""
import re
from typing import List

from shared.config import CHUNK_TARGET_CHARS

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")
_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")


def split_paragraphs(text: str) -> List[str]:
    """Non-empty, stripped paragraphs separated by blank lines."""
    return [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(text or "") if p.strip()]


def split_oversize_paragraph(paragraph: str, target_chars: int) -> List[str]:
    """Split one paragraph longer than target_chars.

    Packs whole sentences; a single sentence over the target is cut at the
    last whitespace before the limit (hard cut when there is none).
    """
    pieces: List[str] = []
    buffer = ""
    for sentence in _SENTENCE_END_RE.split(paragraph):
        while len(sentence) > target_chars:
            cut = sentence.rfind(" ", 0, target_chars)
            if cut <= 0:
                cut = target_chars
            head, sentence = sentence[:cut].strip(), sentence[cut:].strip()
            if buffer:
                pieces.append(buffer)
                buffer = ""
            pieces.append(head)
        candidate = f"{buffer} {sentence}" if buffer else sentence
        if len(candidate) > target_chars and buffer:
            pieces.append(buffer)
            buffer = sentence
        else:
            buffer = candidate
    if buffer.strip():
        pieces.append(buffer.strip())
    return pieces


def chunk_transcript(text: str, target_chars: int = CHUNK_TARGET_CHARS) -> List[str]:
    """Chunk a transcript into ~target_chars pieces on paragraph boundaries.

    Paragraphs are packed (joined by a blank line) until adding the next one
    would reach the target. No chunk exceeds target_chars: paragraphs over
    the target are split on sentence or whitespace boundaries.

    Args:
        text: Full transcript text
        target_chars: Target chunk size in characters

    Returns:
        List of chunk strings, in transcript order
    """
    if target_chars <= 0:
        raise ValueError("target_chars must be positive")
    chunks: List[str] = []
    buffer = ""
    for paragraph in split_paragraphs(text):
        if len(paragraph) > target_chars:
            if buffer:
                chunks.append(buffer)
                buffer = ""
            chunks.extend(split_oversize_paragraph(paragraph, target_chars))
            continue
        candidate = f"{buffer}\n\n{paragraph}" if buffer else paragraph
        if len(candidate) >= target_chars and buffer:
            chunks.append(buffer)
            buffer = paragraph
        else:
            buffer = candidate
    if buffer:
        chunks.append(buffer)
    return chunks
