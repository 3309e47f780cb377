"""Frappeur application layer."""

from frappeur.application.mint_orchestrator import MintOrchestrator

__all__ = ["MintOrchestrator"]
