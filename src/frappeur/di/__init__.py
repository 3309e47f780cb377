"""Dependency injection."""

from frappeur.di.container import FrappeurContainer

__all__ = ["FrappeurContainer"]
