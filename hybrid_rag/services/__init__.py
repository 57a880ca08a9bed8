"""Service layer for business logic."""

from hybrid_rag.services.answer_generator import AnswerGenerator, AnswerValidation
from hybrid_rag.services.document_service import DocumentService, ProcessingStage
from hybrid_rag.services.query_service import QueryService

__all__ = [
    "AnswerGenerator",
    "AnswerValidation",
    "DocumentService",
    "ProcessingStage",
    "QueryService",
]
