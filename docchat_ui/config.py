"""Configuration settings"""
import os

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
ALLOWED_EXTENSIONS = ['pdf', 'txt', 'md', 'docx']
MAX_FILE_SIZE_MB = 20
