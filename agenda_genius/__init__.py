"""AgendaGenius - turn meeting documents into a structured, editable agenda."""

__version__ = "0.1.0"
