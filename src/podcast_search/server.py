"""
FastAPI server for podcast search.

Exposes the corpus, the fallback-aware search entry point and the raw
vector index routes used by the search page.
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import SearchSettings, load_settings
from .corpus import load_corpus
from .embeddings import EmbeddingProvider
from .errors import QuotaExceededError, RemoteServiceError
from .index import PineconeIndex, VectorIndex
from .search import (
    REMOTE_MIN_SCORE,
    SearchOrchestrator,
    SearchOutcome,
    SearchSession,
    SearchStrategy,
    rank_by_similarity,
)
from .search.ranker import LOCAL_EMBEDDING_SCORE_SCALE

logger = logging.getLogger(__name__)

SUGGESTED_QUERIES: tuple[str, ...] = (
    "美食推薦",
    "投資理財",
    "社會議題",
    "日本旅遊",
    "企業故事",
    "娛樂影視",
)

_ORCHESTRATOR: SearchOrchestrator | None = None
_ORCHESTRATOR_LOCK = threading.Lock()


def build_orchestrator(settings: SearchSettings | None = None) -> SearchOrchestrator:
    """Wire corpus, embedding provider and vector index from settings."""
    settings = settings or load_settings()
    corpus = load_corpus(settings.corpus_path)

    embedding_provider: EmbeddingProvider | None = None
    try:
        embedding_provider = EmbeddingProvider(
            model=settings.embedding_model,
            dim=settings.embedding_dim,
            timeout=settings.remote_timeout,
        )
    except ValueError:
        logger.warning("GOOGLE_API_KEY not found, using fallback search")

    vector_index: VectorIndex | None = None
    if settings.pinecone_configured:
        pinecone = PineconeIndex(
            api_key=settings.pinecone_api_key or "",
            host=settings.pinecone_index_host or "",
            name=settings.pinecone_index_name,
            timeout=settings.remote_timeout,
        )
        logger.info("Using Pinecone index %s at %s", pinecone.name, pinecone.host)
        vector_index = pinecone
    else:
        logger.warning("Pinecone is not configured; remote vector search disabled")

    return SearchOrchestrator(
        corpus,
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        settings=settings,
    )


def get_orchestrator() -> SearchOrchestrator:
    global _ORCHESTRATOR
    with _ORCHESTRATOR_LOCK:
        if _ORCHESTRATOR is None:
            _ORCHESTRATOR = build_orchestrator()
        return _ORCHESTRATOR


def set_orchestrator(orchestrator: SearchOrchestrator | None) -> None:
    """Replace (or with None, reset) the process-wide orchestrator."""
    global _ORCHESTRATOR
    with _ORCHESTRATOR_LOCK:
        _ORCHESTRATOR = orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the orchestrator once at startup and release it on shutdown."""
    orchestrator = await asyncio.to_thread(get_orchestrator)
    try:
        yield
    finally:
        orchestrator.close()
        set_orchestrator(None)


app = FastAPI(
    title="Podcast Search",
    description="Semantic search over podcast episodes",
    lifespan=lifespan,
)


class SearchRequest(BaseModel):
    """Request model for the main search entry point."""

    query: str = ""
    category: str | None = None
    strategy: SearchStrategy | None = None


class VectorSearchRequest(BaseModel):
    """Request model for raw vector index queries."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    top_k: int = Field(default=10, alias="topK", ge=1, le=100)
    include_metadata: bool = Field(default=True, alias="includeMetadata")
    filter: dict[str, Any] | None = None


class InlineDocument(BaseModel):
    id: int
    text: str


class SemanticSearchRequest(BaseModel):
    """Request model for in-process semantic ranking of caller documents."""

    query: str = ""
    documents: list[InlineDocument] = Field(default_factory=list)


@app.get("/api/podcasts")
async def list_podcasts(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    """Return the full corpus in its original order."""
    return {
        "podcasts": [
            doc.model_dump(by_alias=True, mode="json") for doc in orchestrator.corpus
        ],
        "total": len(orchestrator.corpus),
    }


@app.get("/api/categories")
async def list_categories(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    return {"categories": orchestrator.corpus.categories()}


@app.get("/api/tags")
async def list_tags(
    limit: int | None = None,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    tags = orchestrator.corpus.tags()
    if limit is not None:
        tags = tags[: max(limit, 0)]
    return {"tags": tags}


@app.get("/api/suggestions")
async def list_suggestions():
    return {"suggestions": list(SUGGESTED_QUERIES)}


@app.post("/api/search")
async def search(
    request: SearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Run the full fallback chain and return ranked episodes."""
    if request.category and request.category not in orchestrator.corpus.categories():
        return JSONResponse(
            {"error": f"Unknown category: {request.category}"}, status_code=400
        )
    try:
        outcome = await asyncio.to_thread(
            orchestrator.search,
            request.query,
            request.category,
            strategy=request.strategy,
        )
    except Exception as exc:
        logger.exception("Search failed")
        return JSONResponse({"error": str(exc)}, status_code=500)

    return _outcome_payload(request.query, request.category, outcome)


def _outcome_payload(
    query: str, category: str | None, outcome: SearchOutcome
) -> dict[str, Any]:
    return {
        "query": query,
        "category": category,
        "strategy": outcome.strategy.value,
        "fell_back": outcome.fell_back,
        "attempts": [
            {
                "strategy": attempt.strategy.value,
                "failure": attempt.failure.value if attempt.failure else None,
            }
            for attempt in outcome.attempts
        ],
        "total": len(outcome.results),
        "results": [item.to_dict() for item in outcome.results],
    }


async def _forward_session_events(
    websocket: WebSocket, queue: "asyncio.Queue[dict[str, Any]]"
) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


@app.websocket("/ws/search")
async def websocket_search(
    websocket: WebSocket,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """
    Live search over a WebSocket.

    Protocol:
    1. Client sends one message per input change: {"query": "...", "category": "..."}
    2. Server streams {"type": "status", "data": {"message": ...}} while a
       remote search is in flight
    3. Server sends {"type": "results", "data": {...}} for the latest input
    """
    await websocket.accept()
    queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    session = SearchSession(
        orchestrator,
        on_results=lambda outcome: queue.put_nowait(
            {
                "type": "results",
                "data": _outcome_payload(
                    session.state.query, session.state.category, outcome
                ),
            }
        ),
        on_status=lambda message: queue.put_nowait(
            {"type": "status", "data": {"message": message}}
        ),
    )
    sender = asyncio.create_task(_forward_session_events(websocket, queue))

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                data = {"query": None}
            query = data.get("query", "")
            category = data.get("category") or None
            if not isinstance(query, str):
                await websocket.send_json(
                    {"type": "error", "data": {"message": "query must be a string"}}
                )
                continue
            session.update(query, category)
    except WebSocketDisconnect:
        pass
    finally:
        session.close()
        sender.cancel()


def _vector_error_response(exc: RemoteServiceError) -> JSONResponse:
    if isinstance(exc, QuotaExceededError):
        return JSONResponse(
            {"error": "Embedding API quota exceeded", "status": "error"},
            status_code=429,
        )
    return JSONResponse({"error": str(exc), "status": "error"}, status_code=500)


@app.post("/api/search-pinecone")
async def search_pinecone(
    request: VectorSearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Query the vector index with a true embedding of the query."""
    if not request.query.strip():
        return JSONResponse(
            {"error": "Query is required and cannot be empty"}, status_code=400
        )
    if orchestrator.vector_index is None:
        return JSONResponse({"error": "Vector index not configured"}, status_code=503)
    if orchestrator.embedding_provider is None:
        return JSONResponse({"error": "Embedding API key not configured"}, status_code=500)

    try:
        matches = await asyncio.to_thread(
            orchestrator.query_index,
            SearchStrategy.REMOTE_EMBEDDING,
            request.query,
            top_k=request.top_k,
            include_metadata=request.include_metadata,
            filter=request.filter,
        )
    except RemoteServiceError as exc:
        logger.warning("Pinecone search error: %s", exc)
        return _vector_error_response(exc)

    return {
        "query": request.query,
        "matches": [match.to_dict() for match in matches],
        "total": len(matches),
        "status": "success",
    }


@app.post("/api/search-fallback")
async def search_fallback(
    request: VectorSearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Query the vector index with a locally hashed query embedding."""
    if not request.query.strip():
        return JSONResponse({"error": "Query is required"}, status_code=400)
    if orchestrator.vector_index is None:
        return JSONResponse({"error": "Vector index not configured"}, status_code=503)

    logger.info("Using fallback search for query: %s", request.query)
    try:
        matches = await asyncio.to_thread(
            orchestrator.query_index,
            SearchStrategy.REMOTE_LOCAL_EMBEDDING,
            request.query,
            top_k=request.top_k,
            include_metadata=request.include_metadata,
            filter=request.filter,
        )
    except RemoteServiceError as exc:
        logger.warning("Fallback search error: %s", exc)
        return JSONResponse(
            {"error": "Fallback search failed", "status": "error"}, status_code=500
        )

    return {
        "query": request.query,
        "matches": [
            {
                "id": match.id,
                "score": match.score * LOCAL_EMBEDDING_SCORE_SCALE,
                "metadata": dict(match.metadata),
            }
            for match in matches
        ],
        "total": len(matches),
        "status": "success",
        "method": "fallback",
    }


@app.post("/api/semantic-search")
async def semantic_search(
    request: SemanticSearchRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Embed the query and caller-supplied documents, rank by cosine similarity."""
    if not request.query or not request.documents:
        return JSONResponse(
            {"error": "Query and documents are required"}, status_code=400
        )
    provider = orchestrator.embedding_provider
    if provider is None:
        return JSONResponse({"error": "Embedding API key not configured"}, status_code=500)

    try:
        query_vector = await asyncio.to_thread(provider.embed_query, request.query)
        doc_vectors = await asyncio.to_thread(
            provider.embed_texts, [doc.text for doc in request.documents]
        )
    except RemoteServiceError as exc:
        logger.warning("Semantic search error: %s", exc)
        return _vector_error_response(exc)

    texts = {str(doc.id): doc.text for doc in request.documents}
    candidates = {
        str(doc.id): vector for doc, vector in zip(request.documents, doc_vectors)
    }
    ranked = rank_by_similarity(query_vector, candidates, min_score=REMOTE_MIN_SCORE)
    return {
        "query": request.query,
        "matches": [
            {"id": int(match.id), "score": match.similarity, "text": texts[match.id]}
            for match in ranked
        ],
        "total": len(ranked),
    }


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
