"""Query and answer models."""

from pydantic import BaseModel, Field

NOT_FOUND_ANSWER = "Not in the document."


class QueryRequest(BaseModel):
    """Question asked against the caller's documents."""

    question: str = Field(min_length=1)
    document_name: str | None = Field(
        default=None,
        description="Document the question is about; sizes the search when given",
    )


class SourceCitation(BaseModel):
    """Page-level citation."""

    document_name: str
    page_number: int = Field(ge=0)


class AnswerResponse(BaseModel):
    """Answer produced from the retrieved chunks."""

    answer: str
    sources: list[SourceCitation] = Field(default_factory=list)
    reasoning: str | None = None
    found_in_document: bool


class QueryResponse(AnswerResponse):
    """Answer plus retrieval bookkeeping returned by the API."""

    query: str
    search_results: int = Field(ge=0, description="Number of chunks used as context")
    processing_time: float = Field(ge=0.0, description="Processing time in seconds")
