"""Markdown lesson documents."""
