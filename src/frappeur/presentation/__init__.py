"""Frappeur presentation layer."""
