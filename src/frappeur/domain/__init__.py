"""Frappeur domain layer."""
