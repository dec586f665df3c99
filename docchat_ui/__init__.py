"""Streamlit client for the DocChat API"""
