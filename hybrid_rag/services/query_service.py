"""Query service implementing the retrieval and answer pipeline."""

import time

from hybrid_rag.config import get_settings
from hybrid_rag.logging_config import get_logger
from hybrid_rag.models.query import NOT_FOUND_ANSWER, QueryRequest, QueryResponse
from hybrid_rag.models.search import SearchConfig
from hybrid_rag.retrieval.adaptive_search import AdaptiveSearchEngine
from hybrid_rag.services.answer_generator import AnswerGenerator
from hybrid_rag.services.document_service import DocumentService

logger = get_logger(__name__)


class QueryService:
    """Service handling the query pipeline.

    1. Size the search from the targeted (or largest) document's page count
    2. Retrieve, deduplicate and diversify chunks in the user's namespace
    3. Generate an answer grounded in those chunks
    4. Return the answer with page citations
    """

    def __init__(
        self,
        document_service: DocumentService,
        search_engine: AdaptiveSearchEngine | None = None,
        answer_generator: AnswerGenerator | None = None,
    ):
        """Initialize query service.

        Args:
            document_service: Source of document records and of the
                embedder and vector store shared with uploads
            search_engine: Search engine (creates default if None)
            answer_generator: Answer generator (creates default if None)
        """
        self.settings = get_settings()
        self.document_service = document_service
        self.search_engine = search_engine or AdaptiveSearchEngine(
            embedder=document_service.embedder,
            vector_store=document_service.vector_store,
        )
        self.answer_generator = answer_generator or AnswerGenerator(
            openai_client=document_service.embedder.openai_client,
            temperature=self.settings.generation_temperature,
            max_tokens=self.settings.generation_max_tokens,
        )

    async def search_config_for(self, user_id: str, document_name: str | None) -> SearchConfig:
        """Adaptive config from the named document, else the user's largest one.

        Raises:
            DocumentNotFoundError: If ``document_name`` is not one of the user's
        """
        if document_name:
            record = await self.document_service.get_document(user_id, document_name)
            page_count = record.page_count
        else:
            records = await self.document_service.list_documents(user_id)
            page_count = max((r.page_count for r in records), default=None)

        return self.search_engine.get_adaptive_config(
            page_count, similarity_threshold=self.settings.similarity_threshold
        )

    async def query(self, user_id: str, request: QueryRequest) -> QueryResponse:
        """Answer a question from the user's documents.

        Raises:
            DocumentNotFoundError: If the named document is not the user's
            SearchExecutionError: If retrieval fails
            AnswerGenerationError: If the chat provider fails
        """
        start_time = time.time()
        logger.info(f"Query START: '{request.question[:100]}'")

        config = await self.search_config_for(user_id, request.document_name)
        results = await self.search_engine.search_relevant_chunks(
            request.question,
            self.document_service.index_name,
            user_id,
            config,
        )

        if not results:
            logger.warning("No relevant chunks found for query")
            return QueryResponse(
                answer=NOT_FOUND_ANSWER,
                sources=[],
                found_in_document=False,
                query=request.question,
                search_results=0,
                processing_time=time.time() - start_time,
            )

        analysis = self.search_engine.analyze_search_results(results)
        logger.info(
            f"Context: {analysis.total_results} chunks, scores "
            f"{analysis.score_min:.3f}-{analysis.score_max:.3f} (avg {analysis.avg_score:.3f}), "
            f"documents={analysis.document_distribution}"
        )

        answer = await self.answer_generator.generate_answer(request.question, results)
        validation = self.answer_generator.validate_answer(answer)
        if not validation.is_valid:
            logger.warning(f"Answer validation issues: {'; '.join(validation.issues)}")

        processing_time = time.time() - start_time
        logger.info(
            f"Query COMPLETE in {processing_time:.2f}s: "
            f"found={answer.found_in_document}, sources={len(answer.sources)}"
        )

        return QueryResponse(
            **answer.model_dump(),
            query=request.question,
            search_results=len(results),
            processing_time=processing_time,
        )
