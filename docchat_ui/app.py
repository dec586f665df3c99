"""Main Application Entry Point

Run with: streamlit run docchat_ui/app.py
"""
import streamlit as st

from docchat_ui.api_client import APIClient
from docchat_ui.chat import render_chat
from docchat_ui.config import API_BASE_URL
from docchat_ui.session_state import init_session_state
from docchat_ui.sidebar import render_sidebar


@st.cache_resource
def get_api_client() -> APIClient:
    return APIClient(API_BASE_URL)


def main():
    st.set_page_config(
        page_title="Chat With Documents",
        page_icon="📚",
        layout="wide"
    )

    init_session_state()
    api_client = get_api_client()

    is_healthy, health_data = api_client.health_check()
    if not is_healthy:
        st.error("❌ Backend unavailable. Start it with `docchat-api`.")
        st.stop()

    st.title("📚 Chat With Documents")
    render_sidebar(api_client)
    render_chat(api_client, health_data)


main()
