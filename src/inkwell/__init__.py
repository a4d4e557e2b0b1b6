"""Inkwell: a blogging API with moderated comments and realtime updates."""

__version__ = "1.0.0"
