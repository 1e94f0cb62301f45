"""
Data model shared by the generation flows, the search stage and the
workflow orchestrator.
"""

from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field


GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class InvalidTransitionError(Exception):
    """Raised when a workflow run is asked to move to a state it cannot reach."""


class SearchIntent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    intent: str
    data_sources: List[str] = Field(default_factory=list, alias="dataSources")


class MockSearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    title: str
    snippet: str
    updated: date
    link: str = "#"


class DraftAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    answer: str


class WorkflowStatus(str, Enum):
    ANALYZING = "analyzing"
    SEARCHING = "searching"
    GENERATING = "generating"
    CONFIRMING = "confirming"
    FEEDBACK_SUBMITTED = "feedback_submitted"
    ERROR = "error"


class Feedback(str, Enum):
    YES = "yes"
    NO = "no"
    PARTIAL = "partial"


TERMINAL_STATUSES: FrozenSet[WorkflowStatus] = frozenset(
    {WorkflowStatus.FEEDBACK_SUBMITTED, WorkflowStatus.ERROR}
)

# Every non-terminal stage may also fall into ERROR.
_NEXT_STATUS: Dict[WorkflowStatus, WorkflowStatus] = {
    WorkflowStatus.ANALYZING: WorkflowStatus.SEARCHING,
    WorkflowStatus.SEARCHING: WorkflowStatus.GENERATING,
    WorkflowStatus.GENERATING: WorkflowStatus.CONFIRMING,
    WorkflowStatus.CONFIRMING: WorkflowStatus.FEEDBACK_SUBMITTED,
}


class WorkflowState(BaseModel):
    run_id: str
    query: str
    status: WorkflowStatus = WorkflowStatus.ANALYZING
    intent: Optional[SearchIntent] = None
    results: List[MockSearchResult] = []
    draft_answer: Optional[DraftAnswer] = None
    feedback: Optional[Feedback] = None
    error_message: Optional[str] = None
    progress_log: List[str] = []
    status_history: List[WorkflowStatus] = [WorkflowStatus.ANALYZING]

    def advance(self, target: WorkflowStatus) -> None:
        """Move to `target`, enforcing the fixed stage order."""
        if target == WorkflowStatus.ERROR:
            if self.status in TERMINAL_STATUSES:
                raise InvalidTransitionError(f"Run is already finished ({self.status.value}).")
        elif _NEXT_STATUS.get(self.status) != target:
            raise InvalidTransitionError(
                f"Cannot move from {self.status.value} to {target.value}."
            )
        self.status = target
        self.status_history.append(target)

    def fail(self, message: str = GENERIC_ERROR_MESSAGE) -> None:
        self.advance(WorkflowStatus.ERROR)
        self.intent = None
        self.results = []
        self.draft_answer = None
        self.error_message = message


class QueryPayload(BaseModel):
    query: str
    view_id: Optional[str] = None


class DraftAnswerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str
    search_results: str = Field(alias="searchResults")


class FeedbackPayload(BaseModel):
    feedback: Feedback
