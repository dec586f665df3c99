"""Session state management"""
import streamlit as st
from typing import List, Dict


def init_session_state():
    """Initialize session state variables"""
    defaults = {
        'messages': [],
        'viewing_document': None,
        'uploader_key': 0,
        'is_generating': False
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def get_messages() -> List[Dict]:
    return st.session_state.messages


def add_message(message: Dict):
    st.session_state.messages.append(message)


def clear_chat():
    st.session_state.messages = []
