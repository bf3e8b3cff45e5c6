"""RAG: keyword-scored transcript retrieval and context assembly."""
from backend.app.rag.context_assembler import build_context
from backend.app.rag.scoring import build_keyword_set, score_by_keywords

__all__ = ["build_context", "build_keyword_set", "score_by_keywords"]
