"""
Launch listener — decodes pump.fun create-v2 webhook payloads into LaunchEvents.
"""

from backend_pumpwatch.solana_listener.models import CreateV2Args, LaunchEvent
from backend_pumpwatch.solana_listener.parser import (
    decode_create_v2,
    dedupe_key,
    extract_create_v2,
    iter_webhook_transactions,
    parse_launch,
    pick_mint,
)

__all__ = [
    "CreateV2Args",
    "LaunchEvent",
    "decode_create_v2",
    "dedupe_key",
    "extract_create_v2",
    "iter_webhook_transactions",
    "parse_launch",
    "pick_mint",
]
