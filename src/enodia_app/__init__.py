"""ENODIA HTTP application."""
