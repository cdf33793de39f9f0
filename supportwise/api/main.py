from fastapi import FastAPI, HTTPException, Body, Header, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import Request as FastAPIRequest
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
import platform
import logging
import time
import uuid

from supportwise.agents import ResponseOrchestrationAgent
from supportwise.config import Settings
from supportwise.datastore import BusinessDataStore
from supportwise.exceptions import NotFoundError, SupportWiseError
from supportwise.services import CompletionService

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
CHAT_ERROR_SUGGESTIONS = ["hey you there?", "can you try again?", "what happened?"]
DEBUG_ANSWER_PREVIEW = 200


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- Pydantic Models ---
class ChatRequest(BaseModel):
    # Empty is rejected by the orchestrator with a 400, not by pydantic with a 422
    message: str = Field(default="", description="The visitor's message.")
    business_id: Optional[str] = Field(default=None, description="Business id; the 'business' query parameter wins.")
    session_id: Optional[str] = Field(default=None, description="Optional session id; the X-Session-Id header wins.")

class ChatResponse(BaseModel):
    response: str
    suggestions: List[str]
    is_new_conversation: bool
    initial_message: Optional[str] = None
    debug: Dict[str, Any]
    error: Optional[str] = None
    business_id: str
    session_id: str
    timestamp: str

class InitialMessageResponse(BaseModel):
    message: str
    suggestions: List[str]
    business_id: str
    business_name: Optional[str] = None
    business_logo: Optional[str] = None

class TestRagRequest(BaseModel):
    query: str = Field(default="", description="Query to score against the business's knowledge base.")


def create_app(
    settings: Optional[Settings] = None,
    datastore: Optional[BusinessDataStore] = None,
    completion_service: Optional[CompletionService] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    orchestrator = ResponseOrchestrationAgent.from_settings(settings, datastore=datastore, completion_service=completion_service)
    started_at = time.monotonic()

    app = FastAPI(
        title="SupportWise API",
        description="Multi-tenant support chat grounded in each business's knowledge base.",
        version=API_VERSION
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    # The widget is embedded on arbitrary customer sites
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SupportWiseError)
    async def supportwise_error_handler(request: FastAPIRequest, exc: SupportWiseError):
        logger.warning(f"{request.method} {request.url.path} failed with {exc.error_code}: {exc.message}")
        body = exc.to_dict(include_details=settings.is_development)
        if isinstance(exc, NotFoundError) and exc.business_id:
            body["business_id"] = exc.business_id
        return JSONResponse(status_code=exc.status_code, content=body)

    async def _require_business(business_id: str):
        business = await orchestrator.cache.get(business_id)
        if business is None:
            raise NotFoundError(business_id=business_id)
        return business

    # --- API Endpoints ---
    @app.get("/api/health")
    async def health_check():
        database = await orchestrator.cache.datastore.health_check()
        body = {
            "status": "ok" if database.get("status") == "ok" else "error",
            "timestamp": _now(),
            "version": API_VERSION,
            "environment": settings.app_env,
            "services": {"database": database, "ai": orchestrator.get_stats()},
        }
        if body["status"] != "ok":
            logger.error(f"Health check failed: {database}")
            return JSONResponse(status_code=503, content=body)
        return body

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(
        request: ChatRequest = Body(...),
        business: Optional[str] = Query(default=None),
        x_session_id: Optional[str] = Header(default=None),
    ):
        business_id = business or request.business_id or "default"
        session_id = x_session_id or request.session_id or str(uuid.uuid4())
        logger.info(f"Chat request - Business: {business_id}, Session: {session_id}")

        try:
            result = await orchestrator.respond(request.message, business_id, session_id)
        except SupportWiseError:
            raise
        except Exception as e:
            logger.error(f"Chat error for business {business_id}, session {session_id}: {e}", exc_info=True)
            content = {"error": "Failed to process message", "suggestions": CHAT_ERROR_SUGGESTIONS}
            if settings.is_development:
                content["details"] = str(e)
            return JSONResponse(status_code=500, content=content)

        return ChatResponse(**result.to_dict(), business_id=business_id, session_id=session_id, timestamp=_now())

    @app.get("/api/initial-message", response_model=InitialMessageResponse)
    async def initial_message(business: str = Query(default="default")):
        return await orchestrator.initial_message(business)

    @app.get("/api/businesses")
    async def list_businesses():
        try:
            businesses = await orchestrator.cache.datastore.list_businesses()
        except SupportWiseError:
            raise
        except Exception as e:
            logger.error(f"Error listing businesses: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to fetch businesses")
        return {"businesses": businesses, "total": len(businesses), "timestamp": _now()}

    @app.get("/api/business/{business_id}")
    async def business_details(business_id: str):
        context = await _require_business(business_id)
        return {**context.to_public_dict(), "last_updated": _now()}

    @app.post("/api/business/{business_id}/cache/clear")
    async def clear_business_cache(business_id: str):
        orchestrator.cache.clear(business_id)
        return {"message": f"Cache cleared for business: {business_id}", "timestamp": _now()}

    @app.post("/api/admin/cache/clear")
    async def clear_all_caches():
        orchestrator.cache.clear()
        orchestrator.clear_history()
        return {"message": "All caches cleared", "timestamp": _now()}

    @app.get("/api/admin/sessions")
    async def active_sessions():
        return {"active_sessions": orchestrator.get_stats()["active_sessions"], "timestamp": _now()}

    @app.get("/api/debug/knowledge-base")
    async def debug_knowledge_base(business: str = Query(default="default")):
        context = await _require_business(business)
        entries = []
        for entry in context.knowledge_base:
            answer = entry.answer
            if len(answer) > DEBUG_ANSWER_PREVIEW:
                answer = answer[:DEBUG_ANSWER_PREVIEW] + "..."
            entries.append({"question": entry.question, "answer": answer, "category": entry.category, "priority": entry.priority})
        return {
            "business_id": business,
            "business_name": context.profile.name,
            "total_entries": len(entries),
            "entries": entries,
            "categories": context.categories(),
        }

    @app.post("/api/debug/test-rag")
    async def debug_test_rag(request: TestRagRequest = Body(...), business: str = Query(default="default")):
        return await orchestrator.debug_retrieval(request.query, business)

    @app.get("/api/debug/stats")
    async def debug_stats():
        return {
            "server": {
                "uptime": round(time.monotonic() - started_at, 3),
                "python_version": platform.python_version(),
                "environment": settings.app_env,
            },
            "services": {
                "ai": orchestrator.get_stats(),
                "database": await orchestrator.cache.datastore.health_check(),
                "cache": orchestrator.cache.stats(),
            },
            "config": {
                "max_tokens": settings.request_max_tokens,
                "temperature": settings.temperature,
                "top_p": settings.top_p,
                "cache_ttl": settings.cache_ttl,
                "rag_top_k": settings.rag_top_k,
                "rag_similarity_threshold": settings.rag_similarity_threshold,
            },
        }

    logger.info("SupportWise API ready.")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    print("Attempting to run Uvicorn server for SupportWise API...")
    print("Set GROQ_API_KEY to enable AI responses.")
    uvicorn.run("supportwise.api.main:app", host="0.0.0.0", port=8000, reload=True)
