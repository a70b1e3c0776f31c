"""
On-chain lookups — SPL mint account state for the launch-integrity scorer.
"""

from backend_pumpwatch.onchain.mint_lookup import MintLookup, TTLCache, parse_mint_account

__all__ = ["MintLookup", "TTLCache", "parse_mint_account"]
