"""
Chat Interface

Streams answers from the backend and shows, under each answer, the
documents it was based on and the excerpts that matched best.
"""

import streamlit as st
from datetime import datetime
from typing import Dict, Optional

from docchat_ui.api_client import error_message
from docchat_ui.session_state import add_message, clear_chat, get_messages


def render_citations(msg: Dict):
    """Source names and snippet excerpts under an assistant message"""
    sources = msg.get("sources") or []
    snippets = msg.get("snippets") or []
    if sources:
        st.caption("📚 Sources: " + ", ".join(source["name"] for source in sources))
    if snippets:
        with st.expander(f"Excerpts ({len(snippets)})"):
            for snippet in snippets:
                st.markdown(f"**{snippet['document']}**")
                st.caption(snippet["text"])


def render_document_viewer(api_client):
    """Extracted text of the document picked in the sidebar"""
    status_code, doc = api_client.get_document(st.session_state.viewing_document)
    col1, col2 = st.columns([6, 1])
    with col2:
        if st.button("Close", use_container_width=True):
            st.session_state.viewing_document = None
            st.rerun()

    if status_code != 200:
        st.error(error_message(doc, "Error loading document content."))
        return

    with col1:
        st.subheader(f"📄 {doc['name']}")
    st.text(doc["content"] or "No content is available for this document. Please reprocess it.")


def stream_answer(api_client, question: str) -> Dict:
    """Show the answer as it arrives and return the finished message"""
    placeholder = st.empty()
    message = {"role": "assistant", "content": "", "sources": [], "snippets": []}

    for event in api_client.ask_stream(question):
        if event["type"] == "metadata":
            message["sources"] = event.get("sources", [])
            message["snippets"] = event.get("snippets", [])
        elif event["type"] == "content":
            message["content"] += event["content"]
            placeholder.markdown(message["content"] + "▌")
        elif event["type"] == "error":
            message["content"] = f"❌ {event['message']}"
            message["sources"], message["snippets"] = [], []
            break

    placeholder.markdown(message["content"])
    message["timestamp"] = datetime.now().isoformat()
    return message


def render_chat(api_client, health_data: Optional[Dict] = None):
    if st.session_state.viewing_document:
        render_document_viewer(api_client)
        return

    if health_data and not health_data.get("ollama_status", {}).get("available"):
        st.warning("The language model service is unavailable; answers will fail until it is back.")

    messages = get_messages()
    if not messages:
        st.info("Ask questions here and the enabled documents are searched for answers with source references.")
    elif st.button("💬 Clear chat", disabled=st.session_state.is_generating):
        clear_chat()
        st.rerun()

    for msg in messages:
        with st.chat_message(msg["role"]):
            st.markdown(msg["content"])
            if msg["role"] == "assistant":
                render_citations(msg)

    if question := st.chat_input("Ask a question about your documents...", disabled=st.session_state.is_generating):
        add_message({"role": "user", "content": question, "timestamp": datetime.now().isoformat()})
        with st.chat_message("user"):
            st.markdown(question)

        st.session_state.is_generating = True
        try:
            with st.chat_message("assistant"):
                message = stream_answer(api_client, question)
                render_citations(message)
            add_message(message)
        finally:
            st.session_state.is_generating = False
