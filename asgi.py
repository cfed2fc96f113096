"""
asgi.py -- Process entry point for the classifieds service.

This is the ONLY module that reads configuration from the environment and
hands it to the app factory. api/main.py knows nothing about where its
Settings came from.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import create_app
from core.config import get_settings

# Fails fast (pydantic ValidationError) if SECRET_KEY is missing or too short.
app = create_app(get_settings())
