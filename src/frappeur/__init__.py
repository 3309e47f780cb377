"""
Frappeur - compressed NFT mint orchestrator.

Submits Bubblegum mints to Solana, confirms them, derives asset IDs and
watches the DAS read-index until the asset becomes visible.
"""

__version__ = "0.1.0"
