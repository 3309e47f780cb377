"""
API middleware for Frappeur.
"""

from frappeur.presentation.api.middleware.error_handler import (
    frappeur_exception_handler,
)

__all__ = ["frappeur_exception_handler"]
