"""Error taxonomy for agenda generation, chat and session editing."""


class AgendaError(Exception):
    """Base class for all AgendaGenius errors."""


class ConfigurationError(AgendaError):
    """Live mode was selected but no Gemini credential is configured."""


class GenerationError(AgendaError):
    """The model returned an empty, malformed or rejected response."""


class SessionBusyError(AgendaError):
    """A generation or chat stream is already pending on this session."""


class EmptyFileSetError(AgendaError, ValueError):
    """Generation was requested without any uploaded documents."""


class NoAgendaError(AgendaError, LookupError):
    """An edit was attempted while no agenda is active."""
