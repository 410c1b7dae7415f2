"""Inbox Docs: documentation pages for files dropped into a watched folder."""

__version__ = "1.0.0"
