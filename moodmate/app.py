from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from moodmate.api import chat_router
from moodmate.api.chat import MISSING_FIELDS_ERROR
from moodmate.core.config import Settings, settings as default_settings
from moodmate.core.llm import LLMConfig, build_completion_client
from moodmate.core.locks import SessionLocks
from moodmate.core.session_store import InMemorySessionStore, SessionStore
from moodmate.event_log import get_events
from moodmate.inference.emotion import EmotionClassifierClient, RetryPolicy
from moodmate.services import TurnOrchestrator

logger = logging.getLogger(__name__)


def build_store(cfg: Settings) -> SessionStore:
    if cfg.session_backend == "firestore":
        from moodmate.core.firestore_store import FirestoreSessionStore, init_firestore

        client = init_firestore(cfg.firebase_config, cfg.firebase_key_path)
        return FirestoreSessionStore(client, collection=cfg.firestore_collection, timeout=cfg.store_timeout)
    if cfg.session_backend != "memory":
        raise ValueError(f"Unsupported session backend '{cfg.session_backend}'.")
    logger.warning("Using in-memory session store; history is lost on restart.")
    return InMemorySessionStore()


def build_orchestrator(cfg: Settings) -> TurnOrchestrator:
    llm_cfg = LLMConfig(
        provider=cfg.llm_provider,
        model=cfg.llm_model,
        api_key=cfg.llm_api_key,
        endpoint=cfg.llm_endpoint,
        temperature=cfg.llm_temperature,
        max_tokens=cfg.llm_max_tokens,
        timeout=cfg.llm_timeout,
    )
    classifier = EmotionClassifierClient(
        cfg.emotion_model_url,
        api_key=cfg.huggingface_api_key,
        timeout=cfg.emotion_timeout,
        retry=RetryPolicy(attempts=cfg.emotion_retry_attempts, delay=cfg.emotion_retry_delay),
    )
    return TurnOrchestrator(
        store=build_store(cfg),
        completion=build_completion_client(llm_cfg),
        classifier=classifier,
        params=llm_cfg.params,
        budget=cfg.context_token_budget,
        default_region=cfg.default_region,
        locks=SessionLocks(max_waiters=cfg.session_max_waiters, timeout=cfg.session_lock_timeout),
    )


def create_app(cfg: Optional[Settings] = None, orchestrator: Optional[TurnOrchestrator] = None) -> FastAPI:
    cfg = cfg or default_settings
    logging.basicConfig(level=cfg.log_level, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")

    app = FastAPI(title=cfg.app_name)
    app.state.orchestrator = orchestrator or build_orchestrator(cfg)
    app.include_router(chat_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        if request.url.path != "/chat":
            return await request_validation_exception_handler(request, exc)
        logger.info("Rejected malformed chat request: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS_ERROR})

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    @app.get("/logs")
    def get_logs(limit: int = 100) -> dict:
        safe_limit = max(1, min(limit, 500))
        events = get_events(safe_limit)
        return {"count": len(events), "logs": events}

    return app


app = create_app()
