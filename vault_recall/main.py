"""
Vault Recall - FastAPI service for local note resurfacing

Indexes a vault of markdown notes with TF-IDF and serves:
- Similar notes for a given note
- Daily digest of forgotten notes worth revisiting
- Contextual "related notes" for the note being edited

Architecture:
- Everything runs locally: no embeddings API, no data leaves the machine
- One IndexEngine per vault, shared by the index service and resurfacer
- Change notifications are debounced into batches (no reindex per keystroke)
- Index snapshot persisted in {vault}/.vault-recall/index.json
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

# Load environment variables from .env.local (local dev) or .env (production)
from dotenv import load_dotenv

# Load .env.local first (highest priority), then .env as fallback
env_local = Path(__file__).parent.parent / ".env.local"
env_file = Path(__file__).parent.parent / ".env"

if env_local.exists():
    print(f"Loading environment from: {env_local}")
    load_dotenv(env_local, override=True)
elif env_file.exists():
    print(f"Loading environment from: {env_file}")
    load_dotenv(env_file, override=True)

# Configure logging: console (brief) + file (detailed)
from .logging_config import setup_logging

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
console_level = getattr(logging, log_level, logging.INFO)
setup_logging(
    log_file=os.getenv("LOG_FILE", "logs/vault-recall.log"),
    console_level=console_level,
    file_level=logging.DEBUG,  # Always DEBUG in file for troubleshooting
    vault_name=Path(os.getenv("VAULT_PATH", ".")).resolve().name,
)

logger = logging.getLogger(__name__)


from fastapi import FastAPI, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .embeddings.engine import IndexEngine, SimilarNote
from .indexer import IndexService
from .resurfacer.resurfacer import Resurfacer, ResurfacedNote
from .resurfacer.scoring import ScoringWeights
from .scheduler import Debouncer
from .storage import VaultStorage

# Configuration from environment variables
VAULT_PATH = os.getenv("VAULT_PATH", ".")
INDEX_DIR = os.getenv("INDEX_DIR", ".vault-recall")
EXCLUDED_FOLDERS = [f.strip() for f in os.getenv("EXCLUDED_FOLDERS", "").split(",") if f.strip()]
DIGEST_COUNT = int(os.getenv("DIGEST_COUNT", "5"))
MIN_DAYS_OLD = float(os.getenv("MIN_DAYS_OLD", "7"))
INDEX_DEBOUNCE_SECONDS = float(os.getenv("INDEX_DEBOUNCE_SECONDS", "2.0"))
REFRESH_DEBOUNCE_SECONDS = float(os.getenv("REFRESH_DEBOUNCE_SECONDS", "0.3"))
SCORING_WEIGHTS = ScoringWeights(
    relevance=float(os.getenv("WEIGHT_RELEVANCE", "0.5")),
    staleness=float(os.getenv("WEIGHT_STALENESS", "0.35")),
    connectivity=float(os.getenv("WEIGHT_CONNECTIVITY", "0.15")),
)
PORT = int(os.getenv("PORT", "8080"))

# Version tracking
APP_VERSION = "0.1.0"
APP_START_TIME = datetime.utcnow().isoformat() + "Z"

# Global instances
vault_storage: Optional[VaultStorage] = None
index_engine: Optional[IndexEngine] = None
index_service: Optional[IndexService] = None
resurfacer: Optional[Resurfacer] = None
refresh_debouncer: Optional[Debouncer] = None
cached_digest: List[ResurfacedNote] = []


async def refresh_views(_batch=None):
    """Recompute the cached daily digest"""
    global cached_digest
    if resurfacer is not None:
        cached_digest = resurfacer.daily_digest(DIGEST_COUNT)
        logger.debug(f"Digest cache refreshed: {len(cached_digest)} notes")


async def request_view_refresh():
    """Coalesce refresh requests into one recomputation"""
    if refresh_debouncer is not None:
        refresh_debouncer.schedule()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup resources"""
    global vault_storage, index_engine, index_service, resurfacer, refresh_debouncer, cached_digest

    if abs(SCORING_WEIGHTS.total - 1.0) > 1e-6:
        logger.warning(f"Scoring weights sum to {SCORING_WEIGHTS.total:.3f}, not 1.0")

    logger.info(f"Opening vault: {Path(VAULT_PATH).resolve()} (excluded: {EXCLUDED_FOLDERS or 'none'})")
    vault_storage = VaultStorage(VAULT_PATH, excluded_folders=EXCLUDED_FOLDERS, index_dir=INDEX_DIR)
    index_engine = IndexEngine()
    resurfacer = Resurfacer(
        index_engine,
        vault_storage,
        min_days_old=MIN_DAYS_OLD,
        weights=SCORING_WEIGHTS,
    )
    refresh_debouncer = Debouncer(REFRESH_DEBOUNCE_SECONDS, refresh_views, name="view-refresh")
    index_service = IndexService(
        index_engine,
        vault_storage,
        debounce_seconds=INDEX_DEBOUNCE_SECONDS,
        on_indexed=request_view_refresh,
    )

    ready = await index_service.initialize()
    if ready:
        await refresh_views()
    else:
        logger.warning("Index not ready: vault has no notes to index")

    yield

    # Shutdown: apply pending updates and persist the index
    logger.info("Shutting down...")
    await index_service.shutdown()
    refresh_debouncer.cancel()
    vault_storage = None
    index_engine = None
    index_service = None
    resurfacer = None
    refresh_debouncer = None
    cached_digest = []


# FastAPI app
app = FastAPI(
    title="Vault Recall API",
    description="Local TF-IDF note similarity and resurfacing",
    version=APP_VERSION,
    lifespan=lifespan,
)


# Request/Response models
class HealthResponse(BaseModel):
    status: str
    vault_path: str
    version: str
    started_at: str
    uptime_seconds: float
    index_ready: bool


class IndexStatusResponse(BaseModel):
    ready: bool
    indexed_notes: int
    built_at: Optional[int] = Field(None, description="Epoch seconds of the last full build")
    pending_updates: int


class RebuildResponse(BaseModel):
    indexed_notes: int
    message: str


class NoteChangedRequest(BaseModel):
    note_id: str = Field(..., description="Vault-relative note path", min_length=1)


class NoteRenamedRequest(BaseModel):
    old_id: str = Field(..., min_length=1)
    new_id: str = Field(..., min_length=1)


class AcceptedResponse(BaseModel):
    message: str


class SimilarNoteItem(BaseModel):
    note_id: str
    similarity: float


class SimilarNotesResponse(BaseModel):
    note_id: str
    results: List[SimilarNoteItem]
    total: int


class DigestItem(BaseModel):
    note_id: str
    score: float = Field(..., description="Composite resurfacing score")
    reason: str
    days_since_modified: int
    snippet: str = ""


class DigestResponse(BaseModel):
    results: List[DigestItem]
    total: int


def _similar_response(note_id: str, hits: List[SimilarNote]) -> SimilarNotesResponse:
    return SimilarNotesResponse(
        note_id=note_id,
        results=[SimilarNoteItem(note_id=h.note_id, similarity=h.similarity) for h in hits],
        total=len(hits),
    )


async def _digest_response(entries: List[ResurfacedNote]) -> DigestResponse:
    items = []
    for entry in entries:
        items.append(DigestItem(
            note_id=entry.note_id,
            score=entry.score,
            reason=entry.reason,
            days_since_modified=entry.days_since_modified,
            snippet=await vault_storage.read_snippet(entry.note_id),
        ))
    return DigestResponse(results=items, total=len(items))


def _require_note_id(note_id: str) -> str:
    note_id = note_id.strip().lstrip("/")
    if not note_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="note_id must not be empty",
        )
    return note_id


def _require_vault_note(note_id: str) -> str:
    note_id = _require_note_id(note_id)
    if not vault_storage.is_note_id(note_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Not a markdown note of this vault: {note_id}",
        )
    return note_id


# Routes
@app.get("/", response_model=dict)
async def root():
    """Service info"""
    return {
        "service": "Vault Recall API",
        "version": APP_VERSION,
        "docs": "/docs",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint"""
    started = datetime.fromisoformat(APP_START_TIME.rstrip("Z"))
    return HealthResponse(
        status="healthy",
        vault_path=str(Path(VAULT_PATH).resolve()),
        version=APP_VERSION,
        started_at=APP_START_TIME,
        uptime_seconds=(datetime.utcnow() - started).total_seconds(),
        index_ready=index_engine is not None and index_engine.is_ready(),
    )


@app.get("/v1/index/status", response_model=IndexStatusResponse)
async def index_status():
    """Index readiness and size"""
    return IndexStatusResponse(
        ready=index_engine.is_ready(),
        indexed_notes=len(index_engine),
        built_at=index_engine.built_at,
        pending_updates=len(index_service.pending_updates),
    )


@app.post("/v1/index/rebuild", response_model=RebuildResponse)
async def rebuild_index():
    """
    Rebuild the whole index from the vault

    Example:
        POST /v1/index/rebuild
    """
    try:
        indexed = await index_service.rebuild()
        if indexed == 0:
            return RebuildResponse(indexed_notes=0, message="Nothing to index: no markdown notes found")
        return RebuildResponse(indexed_notes=indexed, message=f"Indexed {indexed} notes")

    except Exception as e:
        logger.error(f"Index rebuild failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Index rebuild failed: {str(e)}",
        )


@app.post("/v1/notes/changed", response_model=AcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def note_changed(request: NoteChangedRequest):
    """
    Notify that a note was created or modified

    Re-indexing is debounced: repeated notifications within the quiet
    period are coalesced into one update.

    Example:
        POST /v1/notes/changed
        {"note_id": "ideas/spaced-repetition.md"}
    """
    note_id = _require_vault_note(request.note_id)
    index_service.note_changed(note_id)
    return AcceptedResponse(message=f"Queued {note_id} for re-indexing")


@app.post("/v1/notes/rename", response_model=AcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def note_renamed(request: NoteRenamedRequest):
    """
    Notify that a note was renamed or moved

    Example:
        POST /v1/notes/rename
        {"old_id": "inbox/idea.md", "new_id": "ideas/idea.md"}
    """
    old_id = _require_note_id(request.old_id)
    new_id = _require_vault_note(request.new_id)
    index_service.note_renamed(old_id, new_id)
    await request_view_refresh()
    return AcceptedResponse(message=f"Renamed {old_id} → {new_id}")


@app.delete("/v1/notes", response_model=AcceptedResponse)
async def note_deleted(note_id: str = Query(..., description="Vault-relative note path")):
    """
    Remove a deleted note from the index

    Example:
        DELETE /v1/notes?note_id=inbox/old.md
    """
    note_id = _require_note_id(note_id)
    index_service.note_deleted(note_id)
    await request_view_refresh()
    return AcceptedResponse(message=f"Removed {note_id} from index")


@app.get("/v1/notes/similar", response_model=SimilarNotesResponse)
async def similar_notes(
    note_id: str = Query(..., description="Reference note"),
    top_k: int = Query(5, ge=1, le=50, description="Number of results"),
):
    """
    Notes most similar to a given note (TF-IDF cosine similarity)

    Returns an empty list while the index is not ready or when the note
    is not indexed.

    Example:
        GET /v1/notes/similar?note_id=ideas/spaced-repetition.md&top_k=5
    """
    note_id = _require_note_id(note_id)
    try:
        return _similar_response(note_id, index_engine.find_similar(note_id, top_k))
    except Exception as e:
        logger.error(f"Similarity query failed for {note_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Similarity query failed: {str(e)}",
        )


@app.get("/v1/notes/related", response_model=SimilarNotesResponse)
async def related_notes(
    note_id: str = Query(..., description="Note currently being viewed"),
    count: int = Query(5, ge=1, le=50, description="Number of results"),
):
    """
    Forgotten notes on the same topic as the given note

    Only notes older than MIN_DAYS_OLD, ordered by similarity.

    Example:
        GET /v1/notes/related?note_id=journal/today.md&count=5
    """
    note_id = _require_note_id(note_id)
    try:
        return _similar_response(note_id, resurfacer.contextual_related(note_id, count))
    except Exception as e:
        logger.error(f"Related query failed for {note_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Related query failed: {str(e)}",
        )


@app.get("/v1/digest", response_model=DigestResponse)
async def daily_digest(count: Optional[int] = Query(None, ge=1, le=50, description="Number of notes")):
    """
    Daily digest: forgotten notes worth revisiting

    Ranked by relevance to recent work, staleness and lack of links.

    Example:
        GET /v1/digest?count=5
    """
    try:
        return await _digest_response(resurfacer.daily_digest(count or DIGEST_COUNT))
    except Exception as e:
        logger.error(f"Digest failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Digest failed: {str(e)}",
        )


@app.get("/v1/digest/cached", response_model=DigestResponse)
async def cached_daily_digest():
    """Digest as of the last view refresh (cheap, for frequent polling)"""
    return await _digest_response(cached_digest)


@app.post("/v1/views/refresh", response_model=AcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def refresh():
    """Request a (debounced) refresh of the cached digest"""
    await request_view_refresh()
    return AcceptedResponse(message="Refresh scheduled")


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vault_recall.main:app",
        host="127.0.0.1",
        port=PORT,
    )
