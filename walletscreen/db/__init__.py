"""Database schema and helpers."""
