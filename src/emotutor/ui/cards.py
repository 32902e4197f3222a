"""HTML fragments for the Streamlit page, built from a ``/state`` snapshot.

Every value taken from the snapshot is escaped: lesson text can come from a
user-supplied catalogue and is rendered with ``unsafe_allow_html``.
"""

import html


def emotion_badge(state: dict) -> str:
    emo = html.escape(state.get("emotion") or "—")
    speaking = "🔊 speaking" if state.get("speaking") else "🔈 idle"
    return (
        f"<span class='emo-badge'>Emotion: {emo}</span>"
        f"<span class='emo-badge'>Lesson #{int(state.get('lesson_index', 0)) + 1}</span>"
        f"<span class='emo-badge'>{speaking}</span>"
    )


def lesson_card(state: dict) -> str:
    text = html.escape(state.get("lesson_text") or "…")
    return f"<div class='section-card'>{text}</div>"


def status_line(state: dict) -> str:
    return f"<p class='emo-muted'>Status: {html.escape(state.get('status') or '')}</p>"
