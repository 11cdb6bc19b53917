"""
Mode Selector - chooses the live or demo backend for both services.

The selector is handed to whoever needs a service; nothing reads the mode
from a global. Toggling affects the next call only: a call already in
flight keeps the service instance it was given.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from agenda_genius.config import Settings, get_settings

from .base import AgendaService, ChatService
from .chat import DemoChatService, GeminiChatService
from .generation import DemoAgendaService, GeminiAgendaService

logger = logging.getLogger(__name__)


class ServiceMode(Enum):
    DEMO = "demo"
    LIVE = "live"


class ModeSelector:
    """Process-wide demo/live switch and service locator."""

    def __init__(self, settings: Settings, demo_mode: Optional[bool] = None):
        self.settings = settings
        self._demo_mode = (not settings.credential_present) if demo_mode is None else demo_mode
        self._agenda_services: Dict[ServiceMode, AgendaService] = {}
        self._chat_services: Dict[ServiceMode, ChatService] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModeSelector":
        """Demo mode unless a credential was present at startup."""
        return cls(settings)

    @property
    def demo_mode(self) -> bool:
        return self._demo_mode

    @property
    def mode(self) -> ServiceMode:
        return ServiceMode.DEMO if self._demo_mode else ServiceMode.LIVE

    def set_demo_mode(self, enabled: bool) -> bool:
        if enabled != self._demo_mode:
            self._demo_mode = enabled
            logger.info(f"Switched to {self.mode.value} mode")
            if not enabled and not self.settings.credential_present:
                logger.warning("Live mode selected without GEMINI_API_KEY - calls will fail")
        return self._demo_mode

    def toggle(self) -> bool:
        return self.set_demo_mode(not self._demo_mode)

    def agenda_service(self) -> AgendaService:
        """Active agenda generation backend."""
        mode = self.mode
        if mode not in self._agenda_services:
            if mode == ServiceMode.DEMO:
                service = DemoAgendaService(delay_s=self.settings.demo_generation_delay_s)
            else:
                service = GeminiAgendaService(
                    api_key=self.settings.api_key,
                    model=self.settings.gemini_model,
                    timeout_s=self.settings.generation_timeout_s,
                )
            self._agenda_services[mode] = service
        return self._agenda_services[mode]

    def chat_service(self) -> ChatService:
        """Active conversational backend."""
        mode = self.mode
        if mode not in self._chat_services:
            if mode == ServiceMode.DEMO:
                service = DemoChatService(
                    initial_delay_s=self.settings.demo_chat_initial_delay_s,
                    chunk_delay_s=self.settings.demo_chat_chunk_delay_s,
                    chunk_size=self.settings.demo_chat_chunk_size,
                )
            else:
                service = GeminiChatService(
                    api_key=self.settings.api_key,
                    model=self.settings.gemini_model,
                )
            self._chat_services[mode] = service
        return self._chat_services[mode]

    def to_dict(self) -> dict:
        return {
            "demo_mode": self._demo_mode,
            "mode": self.mode.value,
            "credential_present": self.settings.credential_present,
        }


# Singleton instance
_mode_selector: Optional[ModeSelector] = None


def get_mode_selector() -> ModeSelector:
    """Get the global mode selector, built from settings on first use."""
    global _mode_selector
    if _mode_selector is None:
        _mode_selector = ModeSelector.from_settings(get_settings())
        logger.info(f"Mode selector starting in {_mode_selector.mode.value} mode")
    return _mode_selector
