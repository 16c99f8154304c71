"""Shared helpers: validation, formatting, dates, logging and errors."""
