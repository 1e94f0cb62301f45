"""
Generation flows backed by the LLM service.

- analyze_intent: classify a query and pick the data sources to search.
- generate_draft_answer: write a short answer grounded in search results.
- generate_draft_answer_stream: the same answer, yielded as it is produced.
"""

import logging
from typing import AsyncIterator, List, Optional

from pydantic import ValidationError

from .config import settings
from .llm import GenerationError, OllamaClient
from .models import DraftAnswer, SearchIntent

logger = logging.getLogger(__name__)


KNOWN_DATA_SOURCES: List[str] = [
    "Knowledge Base",
    "Database",
    "API",
    "File System",
    "PE-Master",
    "PP-Sales/Inventory",
    "Analytics",
    "CDU-Dashboard",
    "BOP-Pricing",
]

INTENT_PROMPT = (
    "You are an AI assistant that analyzes the intent of a search query for an "
    "internal knowledge search system.\n\n"
    "Query: {query}\n\n"
    "TASK:\n"
    "1. Describe the user's intent in one short sentence.\n"
    "2. Choose the data sources most likely to hold the answer, from: {sources}.\n"
    "3. Respond ONLY with a JSON object of the form "
    '{{"intent": "...", "dataSources": ["...", "..."]}}.\n'
)

DRAFT_ANSWER_PROMPT = (
    "You are an AI assistant that generates a draft answer based on the search "
    "results for a given query.\n\n"
    "Query: {query}\n"
    "Search Results: {search_results}\n\n"
    "Generate a concise and informative answer based on the search results. "
    "The answer should be in {language}.\n"
    "Do not include any source information or links in the answer.\n"
    "Do not include any introductory or concluding sentences.\n"
    "Focus on answering the question directly.\n"
    "If the search results are irrelevant, state that you cannot answer the "
    "question with the provided information.\n"
)

_client: Optional[OllamaClient] = None


def get_client() -> OllamaClient:
    global _client  # pylint: disable=global-statement
    if _client is None:
        _client = OllamaClient()
    return _client


async def close_client() -> None:
    global _client  # pylint: disable=global-statement
    if _client is not None:
        await _client.aclose()
        _client = None


def _require_query(query: str) -> str:
    if not query or not query.strip():
        raise ValueError("Query must not be empty.")
    return query


async def analyze_intent(query: str, client: Optional[OllamaClient] = None) -> SearchIntent:
    _require_query(query)
    client = client or get_client()
    prompt = INTENT_PROMPT.format(query=query, sources=", ".join(KNOWN_DATA_SOURCES))
    content = await client.chat(
        [
            {"role": "system", "content": "You route search queries to data sources."},
            {"role": "user", "content": prompt},
        ],
        json_format=True,
    )
    try:
        intent = SearchIntent.model_validate_json(content)
    except ValidationError as exc:
        raise GenerationError(f"Intent response did not match the expected shape: {content!r}") from exc
    logger.info("Intent for %r: %s -> %s", query, intent.intent, intent.data_sources)
    return intent


async def generate_draft_answer_stream(
    query: str,
    search_results: str,
    client: Optional[OllamaClient] = None,
    language: Optional[str] = None,
) -> AsyncIterator[str]:
    """
    Yield fragments of the draft answer as the model produces them.

    The iterator is single-pass; fragments do not align with words or
    sentences, so callers must concatenate them.
    """
    _require_query(query)
    client = client or get_client()
    prompt = DRAFT_ANSWER_PROMPT.format(
        query=query,
        search_results=search_results,
        language=language or settings.answer_language,
    )
    messages = [
        {"role": "system", "content": "You answer only from the provided search results."},
        {"role": "user", "content": prompt},
    ]
    async for fragment in client.chat_stream(messages):
        yield fragment


async def generate_draft_answer(
    query: str,
    search_results: str,
    client: Optional[OllamaClient] = None,
    language: Optional[str] = None,
) -> DraftAnswer:
    # Drain the stream so both entry points return the same text.
    parts = []
    async for fragment in generate_draft_answer_stream(
        query, search_results, client=client, language=language
    ):
        parts.append(fragment)
    answer = "".join(parts)
    if not answer.strip():
        raise GenerationError("Draft answer was empty.")
    return DraftAnswer(answer=answer)
