import sys
from pathlib import Path

import streamlit as st

try:
    from core.settings import SETTINGS
    from streamlit_ui.api_client import ChatApiError, fetch_history, post_message, validate_message
except ModuleNotFoundError:
    ROOT = Path(__file__).resolve().parents[1]
    if str(ROOT) not in sys.path:
        sys.path.insert(0, str(ROOT))
    from core.settings import SETTINGS
    from streamlit_ui.api_client import ChatApiError, fetch_history, post_message, validate_message


st.set_page_config(page_title="Spur Shop Support", layout="centered")
st.title("Spur Shop Support")

API_BASE_URL = SETTINGS.UI.API_BASE_URL
SESSION_PARAM = "session"

if "messages" not in st.session_state:
    st.session_state.messages = []
if "session_id" not in st.session_state:
    st.session_state.session_id = st.query_params.get(SESSION_PARAM, "")
    st.session_state.history_loaded = False


def remember_session(session_id: str) -> None:
    st.session_state.session_id = session_id
    if session_id:
        st.query_params[SESSION_PARAM] = session_id
    elif SESSION_PARAM in st.query_params:
        del st.query_params[SESSION_PARAM]


# Load the stored history once per browser session
if st.session_state.session_id and not st.session_state.history_loaded:
    st.session_state.history_loaded = True
    try:
        for m in fetch_history(API_BASE_URL, st.session_state.session_id):
            role = "user" if m.get("sender") == "user" else "assistant"
            st.session_state.messages.append({"role": role, "content": m.get("text", "")})
    except ChatApiError:
        # A dead backend should not block starting a new chat.
        st.error("Could not load chat history. You can still start a new chat.")
        remember_session("")

with st.sidebar:
    st.subheader("Configuration")
    st.text(f"API_BASE_URL = {API_BASE_URL}")
    if st.button("New chat"):
        st.session_state.messages = []
        remember_session("")
    st.caption("Values are loaded from environment (.env). Override by setting env vars.")

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])

if prompt := st.chat_input("Ask about shipping, returns, orders..."):
    try:
        text = validate_message(prompt)
    except ChatApiError as e:
        st.error(str(e))
    else:
        st.session_state.messages.append({"role": "user", "content": text})
        with st.chat_message("user"):
            st.markdown(text)

        with st.chat_message("assistant"):
            try:
                with st.spinner("Agent is typing..."):
                    result = post_message(API_BASE_URL, text, st.session_state.session_id or None)
            except ChatApiError as e:
                st.error(str(e))
            else:
                st.markdown(result["reply"])
                st.session_state.messages.append({"role": "assistant", "content": result["reply"]})
                remember_session(result["sessionId"])
