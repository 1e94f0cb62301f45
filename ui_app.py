"""
Streamlit-based web UI for Knowledge Search.

Run with:
    streamlit run ui_app.py

The query is read from the `q` URL parameter, e.g. http://localhost:8501/?q=PE+생산량
"""

import time
import uuid
from typing import Optional

import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

from knowledge_search.config import settings  # noqa: E402


API_BASE = settings.api_base_url

STEPS = [
    (1, "Analyzing Intent"),
    (2, "Searching Data Sources"),
    (3, "Generating Answer"),
    (4, "Final Answer & Confirmation"),
]

STATUS_STEP = {
    "analyzing": 1,
    "searching": 2,
    "generating": 3,
    "confirming": 4,
    "feedback_submitted": 4,
    "error": 5,
}

STEP_ICONS = {"loading": "⏳", "complete": "✅", "error": "❌", "pending": "⚪"}

SOURCE_ICONS = {
    "Knowledge Base": "📘",
    "Database": "🗄️",
    "API": "🔗",
    "File System": "📁",
}

FEEDBACK_CHOICES = [("yes", "👍 Yes"), ("no", "👎 No"), ("partial", "❓ Partially")]


def start_run(query: str, view_id: str) -> dict:
    resp = requests.post(
        f"{API_BASE}/workflow/start",
        json={"query": query, "view_id": view_id},
        timeout=30,
    )
    resp.raise_for_status()
    return resp.json()


def get_status(run_id: str) -> dict:
    resp = requests.get(f"{API_BASE}/workflow/status/{run_id}", timeout=30)
    resp.raise_for_status()
    return resp.json()


def send_feedback(run_id: str, feedback: str) -> dict:
    resp = requests.post(
        f"{API_BASE}/workflow/{run_id}/feedback",
        json={"feedback": feedback},
        timeout=30,
    )
    resp.raise_for_status()
    return resp.json()


def step_status(status: str, step: int) -> str:
    current = STATUS_STEP[status]
    if status == "error" and step == current - 1:
        return "error"
    if step < current:
        return "complete"
    if step == current and status != "error":
        return "loading"
    return "pending"


def step_visible(status: str, step: int) -> bool:
    """Each stage card appears once the stage before it has completed."""
    if step == 4:
        # The answer card stays up after feedback.
        return step_status(status, 2) == "complete" or status == "feedback_submitted"
    if status == "error":
        return False
    return step == 1 or step_status(status, step - 1) == "complete"


def source_icon(source: str) -> str:
    return SOURCE_ICONS.get(source, "📄")


def render_landing() -> None:
    st.markdown("<h1 style='text-align:center'>🔍 InnoSearch</h1>", unsafe_allow_html=True)
    st.markdown(
        "<p style='text-align:center'>Your internal knowledge, unified and verified.</p>",
        unsafe_allow_html=True,
    )
    render_search_bar("")


def render_search_bar(initial: str) -> None:
    with st.form("search_form"):
        query = st.text_input("Search", value=initial, label_visibility="collapsed")
        submitted = st.form_submit_button("Search")
    if submitted and query.strip():
        st.query_params["q"] = query.strip()
        st.rerun()


def render_workflow(container, state: dict) -> None:
    status = state["status"]
    with container.container():
        if status == "error":
            st.error("**An Error Occurred**\n\n" + (state.get("error_message") or ""))
            if st.button("Try Again"):
                st.session_state.pop("run_query", None)
                st.rerun()
            return

        for step, title in STEPS:
            if not step_visible(status, step):
                continue
            current = step_status(status, step)
            with st.expander(f"{STEP_ICONS[current]} {title}", expanded=current != "pending"):
                if current == "pending":
                    continue
                if step == 1:
                    intent = state.get("intent")
                    if intent:
                        st.markdown(f"**{intent['intent']}**")
                        st.write("Routing to: " + ", ".join(f"`{s}`" for s in intent["dataSources"]))
                    else:
                        st.caption("Analyzing...")
                elif step == 2:
                    for result in state.get("results", []):
                        st.markdown(f"{source_icon(result['source'])} **{result['title']}**")
                        st.caption(result["snippet"])
                elif step == 3:
                    st.caption("Drafting an answer from the search results...")
                else:
                    render_answer(state)

        log_text = "\n".join(state.get("progress_log", [])) or "Waiting for updates..."
        st.code(log_text, language="text")


def render_answer(state: dict) -> None:
    answer = state.get("draft_answer")
    if not answer:
        st.caption("Waiting for the draft answer...")
        return
    st.write(answer["answer"])
    st.divider()
    st.markdown("**Sources:**")
    for result in state.get("results", []):
        st.markdown(
            f"{source_icon(result['source'])} [{result['title']}]({result['link']}) "
            f"· {result['updated']}"
        )

    if state["status"] == "feedback_submitted":
        st.success("Thank you for your feedback!")
        return

    st.markdown("**Was this answer helpful?**")
    columns = st.columns(len(FEEDBACK_CHOICES))
    for column, (value, label) in zip(columns, FEEDBACK_CHOICES):
        if column.button(label, key=f"feedback-{value}"):
            try:
                send_feedback(state["run_id"], value)
            except Exception as exc:  # pylint: disable=broad-except
                st.error(f"Failed to send feedback: {exc}")
                return
            st.rerun()


def main() -> None:
    st.set_page_config(page_title="InnoSearch", layout="wide")

    query = st.query_params.get("q", "")
    if not query:
        render_landing()
        st.info("Enter a query in the search bar above to start.")
        return

    st.markdown("### 🔍 AiU Link")
    render_search_bar(query)
    st.subheader(f"Searching for: {query}")
    st.write("Follow the automated process as we retrieve and verify your answer.")

    view_id = st.session_state.setdefault("view_id", uuid.uuid4().hex)

    # A new query for this browser session supersedes the previous run.
    if st.session_state.get("run_query") != query:
        try:
            state = start_run(query, view_id)
        except Exception as exc:  # pylint: disable=broad-except
            st.error(f"Failed to start search: {exc}")
            return
        st.session_state["run_query"] = query
        st.session_state["run_id"] = state["run_id"]

    run_id: Optional[str] = st.session_state.get("run_id")
    placeholder = st.empty()

    # Poll for status updates until the run needs the user or has finished.
    while True:
        try:
            state = get_status(run_id)
        except Exception as exc:  # pylint: disable=broad-except
            st.error(f"Error while fetching status: {exc}")
            return
        if state["status"] in {"confirming", "feedback_submitted", "error"}:
            break
        render_workflow(placeholder, state)
        time.sleep(settings.poll_interval)

    render_workflow(placeholder, state)


if __name__ == "__main__":
    main()
