"""Shared helpers: logging, hooks and schema base classes."""
