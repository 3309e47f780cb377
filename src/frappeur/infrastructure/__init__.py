"""Frappeur infrastructure layer."""
