"""
Knowledge Search package.

A staged search workflow: LLM intent analysis, mock multi-source search,
an LLM-drafted answer and user feedback, served over FastAPI.
"""

from .flows import analyze_intent, generate_draft_answer, generate_draft_answer_stream
from .workflow import SearchWorkflow, WorkflowSessions

__all__ = [
    "analyze_intent",
    "generate_draft_answer",
    "generate_draft_answer_stream",
    "SearchWorkflow",
    "WorkflowSessions",
]
