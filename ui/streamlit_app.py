# Role: Streamlit chat UI.
# - Backend is authoritative (chat + stack snapshot).
# - Quick replies are rendered as buttons under the last assistant message.
# - Sidebar shows where the conversation currently is (which dialog, which step).

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

import requests
import streamlit as st

BACKEND_URL = "http://127.0.0.1:8000"

_DIALOG_LABELS = {
    "main": "Main menu",
    "appointment": "Booking an appointment",
    "student_letter": "Requesting a letter",
    "date_resolver": "Choosing a date",
}


# ----------------------------
# Session helpers
# ----------------------------
def ensure_session() -> None:
    if "session_id" not in st.session_state:
        st.session_state["session_id"] = str(uuid.uuid4())
    if "messages" not in st.session_state:
        st.session_state["messages"] = []
    if "suggestions" not in st.session_state:
        st.session_state["suggestions"] = []
    if "busy" not in st.session_state:
        st.session_state["busy"] = False
    if "snapshot" not in st.session_state:
        st.session_state["snapshot"] = None


# ----------------------------
# Backend calls
# ----------------------------
def send_to_backend(session_id: str, user_message: str) -> List[Dict[str, Any]]:
    resp = requests.post(
        f"{BACKEND_URL}/chat",
        json={"session_id": session_id, "user_message": user_message},
        timeout=30,
    )
    resp.raise_for_status()
    return resp.json().get("messages") or []


def fetch_snapshot(session_id: str) -> Optional[Dict[str, Any]]:
    try:
        r = requests.get(f"{BACKEND_URL}/state/{session_id}", timeout=10)
        if r.status_code != 200:
            return None
        return r.json()
    except requests.RequestException:
        return None


# ----------------------------
# Sidebar: conversation position
# ----------------------------
def render_sidebar() -> None:
    st.sidebar.title("Conversation")

    if st.sidebar.button("New chat", use_container_width=True, disabled=st.session_state["busy"]):
        st.session_state["session_id"] = str(uuid.uuid4())
        st.session_state["messages"] = []
        st.session_state["suggestions"] = []
        st.session_state["snapshot"] = None
        st.rerun()

    st.sidebar.divider()

    snap = st.session_state.get("snapshot")
    if not snap or snap.get("idle"):
        st.sidebar.info("Nothing in progress. Ask me to book an appointment or request a letter.")
        return

    for depth, frame in enumerate(snap.get("stack") or []):
        label = _DIALOG_LABELS.get(frame.get("dialog"), frame.get("dialog"))
        st.sidebar.markdown(f"{'  ' * depth}- **{label}** (step {frame.get('step_index')})")

        options = frame.get("options") or {}
        known = {k: v for k, v in options.items() if k != "kind" and v not in (None, "")}
        for key, value in known.items():
            st.sidebar.caption(f"{key}: {value}")


# ----------------------------
# Chat
# ----------------------------
def render_chat() -> None:
    for msg in st.session_state["messages"]:
        with st.chat_message(msg["role"]):
            st.write(msg["content"])


def run_turn(user_input: str) -> None:
    st.session_state["messages"].append({"role": "user", "content": user_input})
    st.session_state["suggestions"] = []
    st.session_state["busy"] = True
    try:
        with st.spinner("Thinking..."):
            replies = send_to_backend(st.session_state["session_id"], user_input)

        for reply in replies:
            st.session_state["messages"].append({"role": "assistant", "content": reply.get("text", "")})
            if reply.get("suggested_replies"):
                st.session_state["suggestions"] = reply["suggested_replies"]

        # Refresh snapshot after each turn
        st.session_state["snapshot"] = fetch_snapshot(st.session_state["session_id"])

    except requests.RequestException:
        msg = "I couldn't reach the backend. Make sure the API is running on http://127.0.0.1:8000."
        st.session_state["messages"].append({"role": "assistant", "content": msg})
    finally:
        st.session_state["busy"] = False


def render_suggestions() -> Optional[str]:
    suggestions = st.session_state.get("suggestions") or []
    if not suggestions:
        return None
    cols = st.columns(len(suggestions))
    for col, text in zip(cols, suggestions):
        with col:
            if st.button(text, use_container_width=True, disabled=st.session_state["busy"]):
                return text
    return None


# ----------------------------
# Main
# ----------------------------
def main() -> None:
    st.set_page_config(page_title="Campus Assistant", layout="wide")

    st.title("Campus Assistant")
    st.caption("Book an appointment, request a student letter, or ask a question. Say 'help' or 'cancel' any time.")

    ensure_session()
    render_sidebar()
    render_chat()

    clicked = render_suggestions()
    user_input = st.chat_input("Type a message...", disabled=st.session_state["busy"])

    text = clicked or user_input
    if not text:
        return

    run_turn(text)
    st.rerun()


if __name__ == "__main__":
    main()
