"""Background task scheduling."""

from frappeur.infrastructure.scheduling.background_tasks import BackgroundTasks

__all__ = ["BackgroundTasks"]
