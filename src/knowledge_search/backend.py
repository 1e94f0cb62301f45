"""
FastAPI backend for Knowledge Search.

Exposes:
- Generation flow endpoints (via `api.router`)
- Workflow endpoints polled by the web UI
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from . import flows
from .api import router as flows_router
from .models import FeedbackPayload, InvalidTransitionError, QueryPayload, WorkflowState
from .workflow import WorkflowSessions

logger = logging.getLogger(__name__)


def create_app(sessions: Optional[WorkflowSessions] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("Shutting down; cancelling active runs.")
        app.state.sessions.close_all()
        await flows.close_client()

    app = FastAPI(title="Knowledge Search", version="0.1.0", lifespan=lifespan)
    app.state.sessions = sessions or WorkflowSessions()

    # Allow local UIs (Streamlit) to talk to the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    app.include_router(flows_router)

    @app.post("/workflow/start", response_model=WorkflowState)
    async def start_workflow(payload: QueryPayload) -> WorkflowState:
        """
        Start a workflow run and return its initial state.

        Passing the same `view_id` again supersedes that view's previous run.
        """
        try:
            return app.state.sessions.start(payload.query, view_id=payload.view_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.get("/workflow/status/{run_id}", response_model=WorkflowState)
    async def get_status(run_id: str) -> WorkflowState:
        state = app.state.sessions.get(run_id)
        if state is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return state

    @app.post("/workflow/{run_id}/feedback", response_model=WorkflowState)
    async def submit_feedback(run_id: str, payload: FeedbackPayload) -> WorkflowState:
        try:
            return app.state.sessions.submit_feedback(run_id, payload.feedback)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Run not found") from exc
        except InvalidTransitionError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    @app.post("/workflow/views/{view_id}/close", status_code=204)
    async def close_view(view_id: str) -> Response:
        app.state.sessions.close(view_id)
        return Response(status_code=204)

    return app


app = create_app()
