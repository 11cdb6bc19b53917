"""
Chat WebSocket Router

Streams chat replies from the active ChatService to the browser.

Protocol:
    Client → Server:
    - chat_message: {"type": "chat_message", "text": "..."}
    - chat_cancel: stop the reply currently streaming
    - ping

    Server → Client:
    - chat_started: reply message created (empty)
    - chat_delta: {"message_id", "delta", "text"} per fragment; deltas always append
    - chat_replace: {"message_id", "text"} when the reply is swapped wholesale
      (apology after a stream failure); the client discards its accumulated text
    - chat_done: {"message", "cancelled", "error"}
    - status / error / pong
"""

import asyncio
import logging
import time
from typing import Dict, Optional

from fastapi import WebSocket

from agenda_genius.websocket.manager import WebSocketHandler, ConnectionInfo

from .errors import SessionBusyError
from .models import WSMessageType
from .mode import get_mode_selector
from .notifications import get_notification_center
from .session import get_session_controller

logger = logging.getLogger(__name__)


class ChatHandler(WebSocketHandler):
    """
    WebSocket handler for the agenda chat.

    The reply streams in a background task so chat_cancel can arrive while
    fragments are still being sent.
    """

    def __init__(self):
        super().__init__()
        self._stream_tasks: Dict[str, asyncio.Task] = {}

    async def handle_message(
        self,
        websocket: WebSocket,
        topic: str,
        data: dict,
        conn_info: ConnectionInfo
    ):
        """Handle incoming chat messages."""
        msg_type = data.get("type", "")

        try:
            if msg_type == WSMessageType.CHAT_MESSAGE.value:
                await self._handle_chat_message(websocket, topic, data)

            elif msg_type == WSMessageType.CHAT_CANCEL.value:
                await self._handle_cancel(websocket)

            elif msg_type == "ping":
                await websocket.send_json({"type": "pong"})

            else:
                await self._send_error(websocket, f"Unknown message type: {msg_type}")

        except Exception as e:
            logger.error(f"Chat handler error: {e}")
            await self._send_error(websocket, str(e))

    async def _handle_chat_message(self, websocket: WebSocket, topic: str, data: dict):
        text = str(data.get("text", ""))
        if not text.strip():
            await self._send_error(websocket, "Message is empty")
            return

        pending = self._stream_tasks.get(topic)
        if get_session_controller().is_streaming or (pending is not None and not pending.done()):
            await self._send_error(websocket, "Wait for the current reply to finish")
            return

        self._stream_tasks[topic] = asyncio.create_task(
            self._stream_reply(websocket, text)
        )

    async def _stream_reply(self, websocket: WebSocket, text: str):
        """Consume the session's reply stream and forward it."""
        start_time = time.perf_counter()

        session = get_session_controller()
        service = get_mode_selector().chat_service()
        notifications = get_notification_center()

        stream = session.send_message(text, service)
        message = None
        started = False
        previous = ""
        try:
            async for message in stream:
                if not started:
                    started = True
                    await websocket.send_json({
                        "type": WSMessageType.CHAT_STARTED.value,
                        "message_id": message.id,
                        "demo_mode": service.is_demo,
                    })
                    continue

                if message.text.startswith(previous):
                    await websocket.send_json({
                        "type": WSMessageType.CHAT_DELTA.value,
                        "message_id": message.id,
                        "delta": message.text[len(previous):],
                        "text": message.text,
                    })
                else:
                    # Not an extension of what the client has (apology after a failure)
                    await websocket.send_json({
                        "type": WSMessageType.CHAT_REPLACE.value,
                        "message_id": message.id,
                        "text": message.text,
                    })
                previous = message.text

        except SessionBusyError as e:
            await self._send_error(websocket, str(e))
            return

        except Exception as e:
            logger.error(f"Chat stream forwarding error: {e}")
            return

        finally:
            await stream.aclose()

        error = session.last_chat_error
        if error is not None:
            notifications.error(str(error))

        latency_ms = (time.perf_counter() - start_time) * 1000
        await websocket.send_json({
            "type": WSMessageType.CHAT_DONE.value,
            "message": message.to_dict() if message else None,
            "cancelled": session.last_chat_cancelled,
            "error": str(error) if error is not None else None,
            "total_latency_ms": latency_ms,
        })

        logger.info(f"Chat reply in {latency_ms:.0f}ms via {service.name}")

    async def _handle_cancel(self, websocket: WebSocket):
        cancelled = get_session_controller().cancel_chat()
        await websocket.send_json({
            "type": WSMessageType.STATUS.value,
            "status": "cancelling" if cancelled else "idle",
        })

    async def wait_for_stream(self, topic: str) -> Optional[asyncio.Task]:
        """Wait for the reply task on a topic to finish."""
        task = self._stream_tasks.get(topic)
        if task is not None:
            await task
        return task

    async def _send_error(self, websocket: WebSocket, message: str):
        """Send error message to client."""
        await websocket.send_json({
            "type": WSMessageType.ERROR.value,
            "message": message,
        })

    async def on_disconnect(
        self,
        websocket: WebSocket,
        topic: str,
        conn_info: ConnectionInfo
    ):
        """Stop any reply still streaming to the closed socket."""
        task = self._stream_tasks.pop(topic, None)
        if task is not None and not task.done():
            get_session_controller().cancel_chat()
            task.cancel()

        logger.info(f"Chat WebSocket disconnected: {topic}")


# Singleton handler instance
chat_handler = ChatHandler()
