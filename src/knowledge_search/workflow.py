"""
Staged search workflow.

A run moves through:
- analyzing: ask the LLM for the query intent and data sources.
- searching: query the search backend for those sources.
- generating: draft an answer from the search results.
- confirming: wait for the user's yes / no / partial feedback.

Any failure ends the run in `error`. A newer query for the same view
cancels the older run; cancelled runs stop mutating their state.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional

from . import flows
from .config import StageDelays, settings
from .models import (
    DraftAnswer,
    Feedback,
    InvalidTransitionError,
    SearchIntent,
    WorkflowState,
    WorkflowStatus,
)
from .search import MockSearchBackend, SearchBackend, format_search_results

logger = logging.getLogger(__name__)

IntentAnalyzer = Callable[[str], Awaitable[SearchIntent]]
AnswerGenerator = Callable[[str, str], Awaitable[DraftAnswer]]


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass
class InMemoryRunStore:
    """Simple in-memory store for workflow runs. Not for production use."""

    runs: Dict[str, WorkflowState] = field(default_factory=dict)

    def create(self, run_id: str, query: str) -> WorkflowState:
        state = WorkflowState(run_id=run_id, query=query)
        self.runs[run_id] = state
        return state

    def get(self, run_id: str) -> Optional[WorkflowState]:
        return self.runs.get(run_id)

    def discard(self, run_id: str) -> Optional[WorkflowState]:
        return self.runs.pop(run_id, None)


class SearchWorkflow:
    """
    Runs one query through the stages, writing progress into its state.

    Every await is followed by a cancellation check; once the token is
    cancelled nothing more is written to the state.
    """

    def __init__(
        self,
        analyze: Optional[IntentAnalyzer] = None,
        generate: Optional[AnswerGenerator] = None,
        search_backend: Optional[SearchBackend] = None,
        delays: Optional[StageDelays] = None,
    ) -> None:
        self._analyze = analyze or flows.analyze_intent
        self._generate = generate or flows.generate_draft_answer
        self.search_backend = search_backend or MockSearchBackend()
        self.delays = delays or settings.stage_delays

    @staticmethod
    def _log(state: WorkflowState, message: str) -> None:
        logger.info("[%s] %s", state.run_id, message)
        state.progress_log.append(message)

    @staticmethod
    async def _pause(seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    async def run(self, state: WorkflowState, token: CancellationToken) -> None:
        try:
            if token.cancelled:
                return
            self._log(state, f"Analyzing intent for {state.query!r}.")
            intent = await self._analyze(state.query)
            if token.cancelled:
                return
            state.intent = intent
            self._log(state, f"Routing to: {', '.join(intent.data_sources) or 'no sources'}.")

            await self._pause(self.delays.intent)
            if token.cancelled:
                return
            state.advance(WorkflowStatus.SEARCHING)

            await self._pause(self.delays.search)
            if token.cancelled:
                return
            results = await self.search_backend.search(state.query, intent)
            if token.cancelled:
                return
            state.results = results
            self._log(state, f"Search returned {len(results)} results.")
            state.advance(WorkflowStatus.GENERATING)

            await self._pause(self.delays.generate)
            if token.cancelled:
                return
            answer = await self._generate(state.query, format_search_results(results))
            if token.cancelled:
                return
            state.draft_answer = answer
            self._log(state, "Draft answer ready for confirmation.")
            state.advance(WorkflowStatus.CONFIRMING)
        except Exception:  # pylint: disable=broad-except
            if token.cancelled:
                return
            logger.exception("Workflow run %s failed during %s", state.run_id, state.status.value)
            state.fail()


def submit_feedback(state: WorkflowState, feedback: Feedback) -> WorkflowState:
    """Record feedback on a confirming run. Later calls leave it unchanged."""
    if state.status == WorkflowStatus.FEEDBACK_SUBMITTED:
        return state
    if state.status != WorkflowStatus.CONFIRMING:
        raise InvalidTransitionError(
            f"Run {state.run_id} is not awaiting feedback ({state.status.value})."
        )
    state.feedback = feedback
    state.advance(WorkflowStatus.FEEDBACK_SUBMITTED)
    logger.info("[%s] Feedback received: %s", state.run_id, feedback.value)
    return state


@dataclass
class ActiveRun:
    run_id: str
    token: CancellationToken
    task: "asyncio.Task[None]"


class WorkflowSessions:
    """
    Tracks the active run of each view.

    Starting a query for a view cancels whatever that view was running,
    and closing a view cancels its run. Cancelled runs are dropped from
    the store, so they can no longer be read or receive feedback.
    """

    def __init__(
        self,
        workflow: Optional[SearchWorkflow] = None,
        store: Optional[InMemoryRunStore] = None,
    ) -> None:
        self.workflow = workflow or SearchWorkflow()
        self.store = store or InMemoryRunStore()
        self._views: Dict[str, ActiveRun] = {}
        self._tasks: Dict[str, "asyncio.Task[None]"] = {}

    def start(self, query: str, view_id: Optional[str] = None) -> WorkflowState:
        """Create a fresh run for `query` and schedule it on the running loop."""
        if not query or not query.strip():
            raise ValueError("Query must not be empty.")

        run_id = uuid.uuid4().hex
        view_id = view_id or run_id
        self.close(view_id)

        state = self.store.create(run_id, query)
        token = CancellationToken()
        task = asyncio.create_task(self.workflow.run(state, token))
        self._tasks[run_id] = task
        task.add_done_callback(lambda _task: self._tasks.pop(run_id, None))
        self._views[view_id] = ActiveRun(run_id=run_id, token=token, task=task)
        logger.info("Started run %s for view %s", run_id, view_id)
        return state

    def close(self, view_id: str) -> bool:
        active = self._views.pop(view_id, None)
        if active is None:
            return False
        active.token.cancel()
        # A closed or superseded run is gone; its task may still be finishing.
        self.store.discard(active.run_id)
        logger.info("Discarded run %s for view %s", active.run_id, view_id)
        return True

    def close_all(self) -> None:
        for view_id in list(self._views):
            self.close(view_id)

    def get(self, run_id: str) -> Optional[WorkflowState]:
        return self.store.get(run_id)

    def active_run_id(self, view_id: str) -> Optional[str]:
        active = self._views.get(view_id)
        return active.run_id if active else None

    async def wait(self, run_id: str) -> Optional[WorkflowState]:
        """Wait for the automated stages of a run to finish."""
        task = self._tasks.get(run_id)
        if task is not None:
            await asyncio.shield(task)
        return self.store.get(run_id)

    def submit_feedback(self, run_id: str, feedback: Feedback) -> WorkflowState:
        state = self.store.get(run_id)
        if state is None:
            raise KeyError(run_id)
        return submit_feedback(state, feedback)
