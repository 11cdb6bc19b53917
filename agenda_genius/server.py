"""
AgendaGenius - FastAPI Backend Server

Serves the agenda workflow to the browser client:
- REST: uploads, agenda generation and edits, export, mode, notifications
- WebSocket: streaming chat about the documents and the current agenda

Runs against Gemini when GEMINI_API_KEY is set, otherwise in demo mode.
"""

import logging
import time

from fastapi import FastAPI, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from agenda_genius import __version__
from agenda_genius.config import get_settings

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=getattr(logging, get_settings().log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from agenda_genius.agenda.api import router as agenda_router, validation_exception_handler
from agenda_genius.agenda.mode import get_mode_selector
from agenda_genius.agenda.router import chat_handler
from agenda_genius.websocket import ws_manager

# Initialize FastAPI app
app = FastAPI(
    title="AgendaGenius API",
    description="Turns meeting documents into a structured agenda and answers questions about them",
    version=__version__,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(agenda_router)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


# ==================== Timing Middleware ====================

@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration_ms = int((time.time() - start_time) * 1000)
    response.headers["X-Duration-Ms"] = str(duration_ms)
    return response


# ==================== Health Check ====================

@app.get("/health")
async def health_check():
    selector = get_mode_selector()
    return {
        "status": "healthy",
        "version": __version__,
        "mode": selector.mode.value,
        "credential_present": selector.settings.credential_present,
        "model": selector.settings.gemini_model,
    }


# ==================== WebSocket Endpoints ====================

@app.websocket("/ws/chat")
async def chat_websocket(websocket: WebSocket):
    """
    WebSocket endpoint for agenda chat.

    Protocol:
    Client sends:
    - {"type": "chat_message", "text": "..."}  - Ask a question
    - {"type": "chat_cancel"}                  - Stop the current reply
    - {"type": "ping"}

    Server sends:
    - {"type": "chat_started", "message_id": "...", "demo_mode": bool}
    - {"type": "chat_delta", "message_id": "...", "delta": "...", "text": "..."}
    - {"type": "chat_replace", "message_id": "...", "text": "..."}  - Reply swapped (apology)
    - {"type": "chat_done", "message": {...}, "cancelled": bool, "error": str|null}
    - {"type": "status", "status": "cancelling|idle"}
    - {"type": "error", "message": "..."}
    - {"type": "pong"}
    """
    await chat_handler.handle_connection(websocket, "chat")


@app.get("/ws/status")
async def websocket_status():
    """Get WebSocket connection status."""
    return {
        "total_connections": ws_manager.get_connection_count(),
        "topics": ws_manager.get_topics(),
        "topics_detail": {
            topic: ws_manager.get_connection_count(topic)
            for topic in ws_manager.get_topics()
        }
    }


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
