"""Domain service interfaces."""

from frappeur.domain.services.i_chain_client import IChainClient

__all__ = ["IChainClient"]
