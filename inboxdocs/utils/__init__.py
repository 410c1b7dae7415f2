"""Shared utilities: configuration and filesystem helpers."""
