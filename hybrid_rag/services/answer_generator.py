"""Grounded answer generation from retrieved chunks."""

import re
from dataclasses import dataclass, field

from hybrid_rag.clients.openai_client import OpenAIClient
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.query import NOT_FOUND_ANSWER, AnswerResponse, SourceCitation
from hybrid_rag.models.search import SearchResult

logger = get_logger(__name__)

SYSTEM_PROMPT = f"""You are a strict legal assistant for law students and professionals. Your role is to provide accurate answers based ONLY on the provided context from legal documents.

CRITICAL RULES:
1. Use ONLY the context provided below. Never use external knowledge.
2. If the answer is not in the context, respond exactly: "{NOT_FOUND_ANSWER}"
3. For every factual statement, cite the source as (DocumentName, Page X).
4. Provide a clear explanation of your reasoning process.
5. Be precise with legal terminology and citations.
6. If information is partially in the document but incomplete, say what you can find and note what's missing.
7. NEVER refer to "chunks" or "sources" by number in your response (e.g., don't say "Chunk 1" or "Source 1").

RESPONSE FORMAT:
- Give a direct answer to the question
- Cite sources for each claim using only: (DocumentName, Page X)
- Explain your reasoning based on the document content, not source numbers
- If uncertain or information is missing, be explicit about limitations
- Focus on the legal content, not the internal organization of the context"""

REASONING_PATTERN = re.compile(
    r"(?:reasoning|explanation|because|since|this is based on)[\s:.]+(.*?)(?:\n\n|$)",
    re.IGNORECASE | re.DOTALL,
)


@dataclass
class AnswerValidation:
    """Consistency check of a generated answer."""

    is_valid: bool
    issues: list[str] = field(default_factory=list)


class AnswerGenerator:
    """Composes the prompt from search results and parses the model's answer."""

    def __init__(
        self,
        openai_client: OpenAIClient,
        temperature: float = 0.1,
        max_tokens: int = 1000,
    ):
        self.openai_client = openai_client
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate_answer(self, query: str, results: list[SearchResult]) -> AnswerResponse:
        """Answer ``query`` from ``results`` only.

        With no results the model is not called and the fixed not-found
        answer is returned.

        Raises:
            AnswerGenerationError: If the chat provider fails
        """
        if not results:
            return AnswerResponse(answer=NOT_FOUND_ANSWER, sources=[], found_in_document=False)

        user_prompt = self.build_user_prompt(query, self.format_chunks_for_prompt(results))

        answer_text = await self.openai_client.generate(
            prompt=user_prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            system_message=SYSTEM_PROMPT,
        )
        logger.info(f"Generated answer from {len(results)} chunks")

        return self.parse_answer(answer_text or NOT_FOUND_ANSWER, results)

    @staticmethod
    def format_chunks_for_prompt(results: list[SearchResult]) -> str:
        """Render each chunk under a ``[Source i: doc, Page p, Section: s]`` header."""
        blocks = []
        for i, result in enumerate(results, 1):
            header = f"[Source {i}: {result.document_name}, Page {result.page_number}"
            if result.section_heading:
                header += f", Section: {result.section_heading}"
            blocks.append(f"{header}]\n{result.text}\n")
        return "\n".join(blocks)

    @staticmethod
    def build_user_prompt(query: str, context: str) -> str:
        return (
            f"Context from legal documents:\n{context}\n\n"
            f"User question: {query}\n\n"
            "Please answer the question using only the provided context. "
            "Remember to cite sources and explain your reasoning."
        )

    def parse_answer(self, answer_text: str, results: list[SearchResult]) -> AnswerResponse:
        """Derive found flag, cited sources and reasoning from the raw answer."""
        found = NOT_FOUND_ANSWER.lower().rstrip(".") not in answer_text.lower()

        match = REASONING_PATTERN.search(answer_text)
        reasoning = match.group(1).strip() if match else None

        return AnswerResponse(
            answer=answer_text,
            sources=self.extract_sources(answer_text, results),
            reasoning=reasoning or None,
            found_in_document=found,
        )

    @staticmethod
    def extract_sources(answer_text: str, results: list[SearchResult]) -> list[SourceCitation]:
        """Results whose page or document name the answer mentions, once per page."""
        sources: list[SourceCitation] = []
        seen: set[tuple[str, int]] = set()

        for result in results:
            key = (result.document_name, result.page_number)
            if key in seen:
                continue

            page_cited = re.search(rf"\b[Pp]age {result.page_number}\b", answer_text)
            document_cited = bool(result.document_name) and result.document_name in answer_text
            if page_cited or document_cited:
                sources.append(
                    SourceCitation(
                        document_name=result.document_name, page_number=result.page_number
                    )
                )
                seen.add(key)

        return sources

    @staticmethod
    def validate_answer(answer: AnswerResponse) -> AnswerValidation:
        issues = []

        if answer.found_in_document and not answer.sources:
            issues.append("Answer claims to be in document but provides no sources")

        if not answer.found_in_document and answer.answer != NOT_FOUND_ANSWER:
            issues.append(
                f"Answer should be exactly '{NOT_FOUND_ANSWER}' when information not found"
            )

        if answer.found_in_document and not answer.reasoning:
            issues.append("Answer should include reasoning/explanation")

        return AnswerValidation(is_valid=not issues, issues=issues)
