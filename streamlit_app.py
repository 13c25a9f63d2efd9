# =============================================================================
# streamlit_app.py — BookCopy Studio: Manuscript (upload + generate) & Activity
# =============================================================================
# Run: streamlit run streamlit_app.py
# Backend: BACKEND_URL (default http://127.0.0.1:8000)
# =============================================================================

import os
from collections import Counter

import requests
import streamlit as st

try:
    import plotly.graph_objects as go
    HAS_PLOTLY = True
except ImportError:
    HAS_PLOTLY = False

BASE_URL = (os.environ.get("BACKEND_URL") or "http://127.0.0.1:8000").rstrip("/")
GENERATION_TYPES = ["blurb", "description", "keywords", "categories", "foreword", "analysis"]


def _headers() -> dict:
    token = st.session_state.get("token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def _show_error(e: requests.exceptions.RequestException) -> None:
    response = getattr(e, "response", None)
    if response is not None:
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = response.text[:300]
        st.error(f"Request failed ({response.status_code}): {detail}")
    else:
        st.error(f"Request failed: {e}")


def fetch_post_json(path: str, json_payload: dict | None = None, files: dict | None = None) -> dict | None:
    path = path if path.startswith("/") else "/" + path
    try:
        r = requests.post(f"{BASE_URL}{path}", json=json_payload, files=files, headers=_headers(), timeout=120)
        r.raise_for_status()
        return r.json()
    except requests.exceptions.RequestException as e:
        _show_error(e)
        return None


def fetch_json(path: str) -> dict | list | None:
    path = path if path.startswith("/") else "/" + path
    try:
        r = requests.get(f"{BASE_URL}{path}", headers=_headers(), timeout=10)
        r.raise_for_status()
        return r.json()
    except requests.exceptions.RequestException as e:
        _show_error(e)
        return None


st.set_page_config(page_title="BookCopy Studio", layout="centered")
st.title("BookCopy Studio")

with st.sidebar:
    st.caption(f"Backend: `{BASE_URL}`")
    st.caption("Start both: `python run.py`")
    if st.session_state.get("user"):
        st.write(f"Signed in as **{st.session_state['user']['username']}**")
        if st.button("Log out"):
            for key in ("token", "user", "file", "extracted_text", "analysis"):
                st.session_state.pop(key, None)
            st.rerun()

# -----------------------------------------------------------------------------
# Login / register
# -----------------------------------------------------------------------------
if not st.session_state.get("token"):
    tab_login, tab_register = st.tabs(["Log in", "Register"])
    with tab_login:
        email = st.text_input("Email", key="login_email")
        password = st.text_input("Password", type="password", key="login_password")
        if st.button("Log in", type="primary"):
            out = fetch_post_json("/auth/login", {"email": email, "password": password})
            if out:
                st.session_state["token"] = out["token"]
                st.session_state["user"] = out["user"]
                st.rerun()
    with tab_register:
        username = st.text_input("Username", key="reg_username")
        email = st.text_input("Email", key="reg_email")
        password = st.text_input("Password", type="password", key="reg_password")
        if st.button("Create account"):
            out = fetch_post_json("/auth/register", {"username": username, "email": email, "password": password})
            if out:
                st.session_state["token"] = out["token"]
                st.session_state["user"] = out["user"]
                st.rerun()
    st.stop()

tab_manuscript, tab_activity = st.tabs(["Manuscript", "Activity"])

# -----------------------------------------------------------------------------
# Manuscript — upload, analysis, generation
# -----------------------------------------------------------------------------
with tab_manuscript:
    st.subheader("Upload a manuscript")
    uploaded = st.file_uploader("DOCX or PDF", type=["docx", "pdf"], accept_multiple_files=False)
    if uploaded is not None and st.button("Upload and analyze", type="primary"):
        with st.spinner("Extracting text..."):
            out = fetch_post_json("/upload", files={"file": (uploaded.name, uploaded.getvalue(), uploaded.type)})
        if out:
            st.session_state["file"] = out["file"]
            st.session_state["extracted_text"] = out["extracted_text"]
            st.session_state["analysis"] = out["technical_analysis"]

    if st.session_state.get("extracted_text"):
        analysis = st.session_state.get("analysis") or {}
        cols = st.columns(4)
        cols[0].metric("Words", analysis.get("word_count", 0))
        cols[1].metric("Characters", analysis.get("character_count", 0))
        cols[2].metric("Sentences", analysis.get("sentence_count", 0))
        cols[3].metric("Avg word length", round(analysis.get("average_word_length", 0.0), 2))

        st.divider()
        st.subheader("Generate copy")
        gen_type = st.selectbox("Content type", GENERATION_TYPES)
        if st.button("Generate"):
            with st.spinner("Generating..."):
                body = {
                    "type": gen_type,
                    "extracted_text": st.session_state["extracted_text"],
                    "file_id": st.session_state["file"]["file_id"],
                }
                out = fetch_post_json("/generate", body)
            if out:
                st.text_area("Output", out.get("output", ""), height=260)
                st.caption(f"Latency: {out.get('latency_ms', '—')} ms")
    else:
        st.info("Upload a manuscript to get started.")

# -----------------------------------------------------------------------------
# Activity — recent logs and actions per type
# -----------------------------------------------------------------------------
with tab_activity:
    st.subheader("Recent activity")
    logs = fetch_json("/logs?limit=100")
    if logs is None:
        st.info("Could not load activity. Is the backend running?")
    elif not logs:
        st.caption("No activity yet.")
    else:
        counts = Counter(entry["action_type"] for entry in logs)
        if HAS_PLOTLY:
            fig = go.Figure(data=[go.Bar(x=list(counts.keys()), y=list(counts.values()), name="Actions")])
            fig.update_layout(title="Actions by type", xaxis_title="Action", yaxis_title="Count", height=300)
            st.plotly_chart(fig, use_container_width=True)
        else:
            for name, count in counts.items():
                st.write(f"- **{name}**: {count}")
            st.caption("Install plotly for charts: pip install plotly")
        for entry in logs[:20]:
            st.write(f"`{entry['timestamp'][:19]}` **{entry['action_type']}**: {entry.get('description') or ''}")
