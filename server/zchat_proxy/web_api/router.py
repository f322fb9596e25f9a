"""
Web API Router - legacy raw-text chat interface.
"""

from fastapi import APIRouter
from .web_api import chat

router = APIRouter()

router.include_router(chat.router, tags=["legacy-chat"])
