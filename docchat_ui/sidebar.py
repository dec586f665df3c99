"""Sidebar: document list with search toggles, upload and linking"""
import streamlit as st
from typing import Dict

from docchat_ui.api_client import error_message
from docchat_ui.config import ALLOWED_EXTENSIONS, MAX_FILE_SIZE_MB
from docchat_ui.utils import file_type_badge, format_file_size


def render_document_card(doc: Dict, api_client):
    """One document: name, badges, enable toggle, view and delete"""
    st.markdown(f"**[{doc['name']}]({api_client.file_url(doc['id'])})**")
    st.caption(f"{file_type_badge(doc)} • {format_file_size(doc['file_size'])} • {doc['status']}")
    if doc.get("error"):
        st.caption(f"⚠️ {doc['error']}")

    col1, col2, col3 = st.columns([3, 1, 1])
    with col1:
        enabled = st.toggle(
            "Searchable",
            value=doc["enabled"],
            key=f"enabled_{doc['id']}",
            disabled=st.session_state.is_generating
        )
        if enabled != doc["enabled"]:
            status_code, response = api_client.toggle_document(doc["id"], enabled)
            if status_code != 200:
                st.error(error_message(response, "Could not update document"))
            st.rerun()
    with col2:
        if st.button("👁", key=f"view_{doc['id']}", help="View text"):
            st.session_state.viewing_document = doc["id"]
            st.rerun()
    with col3:
        if st.button("✕", key=f"delete_{doc['id']}", help="Delete", disabled=st.session_state.is_generating):
            status_code, response = api_client.delete_document(doc["id"])
            if status_code == 200:
                if st.session_state.viewing_document == doc["id"]:
                    st.session_state.viewing_document = None
                st.rerun()
            else:
                st.error(error_message(response, "Delete failed"))


def render_group(group: Dict, api_client):
    for doc in group["documents"]:
        render_document_card(doc, api_client)
    for sub in group["subcategories"]:
        st.markdown(f"*{sub['title']}*")
        render_group(sub, api_client)


def render_upload(api_client):
    st.subheader("📤 Upload")
    category = st.text_input("Category", key="upload_category")
    uploaded_files = st.file_uploader(
        "Choose files",
        type=ALLOWED_EXTENSIONS,
        accept_multiple_files=True,
        key=f"uploader_{st.session_state.uploader_key}",
        disabled=st.session_state.is_generating
    )
    if uploaded_files and st.button("Upload", use_container_width=True):
        for uploaded_file in uploaded_files:
            if uploaded_file.size > MAX_FILE_SIZE_MB * 1024 * 1024:
                st.error(f"{uploaded_file.name} exceeds {MAX_FILE_SIZE_MB}MB limit")
                continue
            with st.spinner(f"Uploading {uploaded_file.name}..."):
                status_code, response = api_client.upload_file(
                    uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type, category
                )
            if status_code == 200:
                st.success(f"{uploaded_file.name}: {response['chunk_count']} chunks")
            else:
                st.error(f"{uploaded_file.name}: {error_message(response, 'Upload failed')}")
        st.session_state.uploader_key += 1
        st.rerun()


def render_link(api_client):
    st.subheader("🔗 Link a document")
    with st.form("link_form", clear_on_submit=True):
        url = st.text_input("URL")
        name = st.text_input("Name (optional)")
        category = st.text_input("Category (optional)")
        if st.form_submit_button("Add") and url:
            with st.spinner("Fetching document..."):
                status_code, response = api_client.link_document(url, name, category)
            if status_code == 200:
                st.success(f"Added {response['name']}")
            else:
                st.error(error_message(response, "Could not add document"))

    if st.button("⚙️ Process pending documents", use_container_width=True):
        with st.spinner("Processing..."):
            status_code, response = api_client.process_pending()
        if status_code == 200:
            st.success(f"{response['processed']} documents processed, {response['failed']} failed")
        else:
            st.error(error_message(response, "Processing failed"))


def render_sidebar(api_client):
    with st.sidebar:
        groups = api_client.get_grouped_documents()
        total = sum(
            len(group["documents"]) + sum(len(sub["documents"]) for sub in group["subcategories"])
            for group in groups
        )

        st.subheader("📖 Documents")
        st.caption(f"{total} document{'s' if total != 1 else ''} uploaded")
        if not groups:
            st.info("No documents uploaded yet")
        for group in groups:
            with st.expander(group["title"], expanded=True):
                render_group(group, api_client)

        st.markdown("---")
        render_upload(api_client)
        st.markdown("---")
        render_link(api_client)
