import os
import time
from typing import Optional

import requests
import streamlit as st

from emotutor.config import load_config
from emotutor.ui.cards import emotion_badge, lesson_card, status_line


# ====================== Page Config & CSS ======================
st.set_page_config(
    page_title="emotutor — Emotion-Aware Tutor",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
    <style>
      :root {
        --primary:#1f2937; --muted:#6b7280; --accent:#3b82f6;
        --badge:#eef2ff; --badge-border:#c7d2fe; --badge-text:#1e3a8a;
      }
      .emo-badge {
        display:inline-block; padding:3px 10px; border-radius:10px;
        background:var(--badge); color:var(--badge-text);
        border:1px solid var(--badge-border); font-size:12px; margin-right:6px;
      }
      .emo-muted { color:var(--muted); font-size:12px; }
      .section-card {
        border:1px solid #e5e7eb; border-radius:12px; padding:14px 16px; background:#fff;
        font-size:20px; min-height:80px;
      }
    </style>
    """,
    unsafe_allow_html=True,
)


# ====================== Session State ======================
def init_session_state():
    if "api_url" not in st.session_state:
        st.session_state.api_url = os.environ.get("EMOTUTOR_API", "http://localhost:8000")
    if "auto_refresh" not in st.session_state:
        st.session_state.auto_refresh = True
    if "last_error" not in st.session_state:
        st.session_state.last_error = None


# ====================== API helpers ======================
def api(method: str, path: str, **kwargs) -> Optional[dict]:
    """Call the tutor API; on failure remember the error and return None."""
    try:
        resp = requests.request(method, st.session_state.api_url + path, timeout=30, **kwargs)
    except requests.RequestException as e:
        st.session_state.last_error = f"Tutor API unreachable: {e}"
        return None
    if resp.status_code >= 400:
        try:
            st.session_state.last_error = resp.json().get("detail", resp.text)
        except ValueError:
            st.session_state.last_error = resp.text
        return None
    st.session_state.last_error = None
    return resp.json()


# ====================== Load Config & Initialize ======================
CFG_PATH = os.environ.get("EMOTUTOR_CONFIG", "configs/default.yaml")
cfg = load_config(CFG_PATH)
init_session_state()


# ====================== Sidebar Controls ======================
with st.sidebar:
    st.header("⚙️ Controls")
    st.session_state.api_url = st.text_input("Tutor API", value=st.session_state.api_url)
    st.session_state.auto_refresh = st.toggle("Auto-refresh while teaching", value=st.session_state.auto_refresh)
    st.caption(f"Refresh period follows the lesson cadence ({cfg.loop.period_sec:.1f}s).")

    st.markdown("---")
    with st.expander("Privacy ⚖️", expanded=False):
        st.markdown(
            """
**Camera** frames are processed on the tutor host and never stored.
**Sessions** are in memory only; nothing is kept after you go back.
            """
        )


# ====================== Top Title ======================
st.title("🎓 Emotion-Aware Tutor")
st.caption("Affect sampling → lesson adaptation → adaptive narration.")

state = api("GET", "/state")
if state is None:
    st.error(st.session_state.last_error or "Tutor API unavailable.")
    st.stop()


# ====================== Subject Picker ======================
if state["state"] != "running":
    subjects = api("GET", "/subjects") or []
    st.subheader("Choose a subject")
    cols = st.columns(max(1, len(subjects)))
    for col, subject in zip(cols, subjects):
        if col.button(subject.upper(), use_container_width=True):
            state = api("POST", "/subject", json={"subject": subject}) or state

    if st.button("▶️ Start Lesson", type="primary", disabled=state["state"] != "selected"):
        with st.spinner("Preparing lesson..."):
            state = api("POST", "/start") or api("GET", "/state") or state


# ====================== Lesson Area ======================
else:
    if st.button("⬅️ Back"):
        state = api("POST", "/back") or state
        st.rerun()

    st.markdown(emotion_badge(state), unsafe_allow_html=True)
    st.markdown(lesson_card(state), unsafe_allow_html=True)
    if state.get("face_box"):
        x, y, w, h = state["face_box"]
        st.caption(f"Face at ({x}, {y}), {w}×{h}px")

st.markdown(status_line(state), unsafe_allow_html=True)
if st.session_state.last_error:
    st.warning(st.session_state.last_error)

if state["state"] == "running" and st.session_state.auto_refresh:
    time.sleep(cfg.loop.period_sec)
    st.rerun()
