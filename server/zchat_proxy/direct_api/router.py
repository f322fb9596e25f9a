"""
Direct API Router - OpenAI-compatible programmatic access.
"""

from fastapi import APIRouter
from .v1 import chat_completions

router = APIRouter()

router.include_router(chat_completions.router, tags=["direct-api-v1"])
