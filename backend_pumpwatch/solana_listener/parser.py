"""
pump.fun launch parser — webhook transaction payloads to LaunchEvents.

Finds the create-v2 instruction of the pump.fun program in a Helius-style
enhanced transaction, decodes its fixed layout (discriminator, three
length-prefixed strings, 32-byte creator, mayhem flag) and picks the new
mint from the token balance data. Purely structural; no scoring.
"""

from __future__ import annotations

import struct
import time
from typing import Any, Iterator

import base58

from backend_pumpwatch.core.exceptions import LaunchDecodeError
from backend_pumpwatch.pumpwatch_logging import get_logger
from backend_pumpwatch.solana_listener.models import CreateV2Args, LaunchEvent

logger = get_logger(__name__)

PUMP_PROGRAM_ID = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
CREATE_V2_DISCRIMINATOR = bytes([214, 144, 76, 236, 95, 139, 49, 180])
CREATOR_LEN = 32
MIN_MINT_LEN = 21


def _read_u32_le(raw: bytes, offset: int) -> int:
    if offset + 4 > len(raw):
        raise LaunchDecodeError(f"truncated length prefix at offset {offset}")
    return struct.unpack_from("<I", raw, offset)[0]


def _read_string(raw: bytes, offset: int) -> tuple[str, int]:
    """Borsh string: u32 LE byte length + UTF-8 bytes. Returns (value, next_offset)."""
    length = _read_u32_le(raw, offset)
    start = offset + 4
    end = start + length
    if end > len(raw):
        raise LaunchDecodeError(f"string of {length} bytes overruns data at offset {offset}")
    return raw[start:end].decode("utf-8", errors="replace"), end


def decode_create_v2(raw: bytes) -> CreateV2Args:
    """
    Decode create-v2 instruction data.

    Raises LaunchDecodeError on discriminator mismatch or truncated data.
    A missing trailing mayhem byte decodes as False.
    """
    if raw[: len(CREATE_V2_DISCRIMINATOR)] != CREATE_V2_DISCRIMINATOR:
        raise LaunchDecodeError("not a create_v2 instruction")
    offset = len(CREATE_V2_DISCRIMINATOR)
    name, offset = _read_string(raw, offset)
    symbol, offset = _read_string(raw, offset)
    uri, offset = _read_string(raw, offset)
    if offset + CREATOR_LEN > len(raw):
        raise LaunchDecodeError("truncated creator key")
    creator = raw[offset : offset + CREATOR_LEN]
    offset += CREATOR_LEN
    is_mayhem = offset < len(raw) and raw[offset] == 1
    return CreateV2Args(
        name=name,
        symbol=symbol,
        uri=uri,
        creator_hex=creator.hex(),
        is_mayhem=is_mayhem,
    )


def _program_id(ix: dict[str, Any]) -> str | None:
    pid = ix.get("programId")
    if isinstance(pid, str) and pid:
        return pid
    if pid is not None:
        return str(pid)
    program = ix.get("program")
    return program if isinstance(program, str) else None


def _instruction_data(ix: dict[str, Any]) -> str | None:
    """Instruction data in base58; Helius nests it differently per payload version."""
    data = ix.get("data")
    if isinstance(data, str):
        return data
    if isinstance(data, dict) and isinstance(data.get("data"), str):
        return data["data"]
    inner = ix.get("instruction")
    if isinstance(inner, dict) and isinstance(inner.get("data"), str):
        return inner["data"]
    return None


def _candidate_instructions(tx: dict[str, Any]) -> list[dict[str, Any]]:
    candidates: list[dict[str, Any]] = []
    top = tx.get("instructions")
    if isinstance(top, list):
        candidates.extend(ix for ix in top if isinstance(ix, dict))
    message = (tx.get("transaction") or {}).get("message") if isinstance(tx.get("transaction"), dict) else None
    if isinstance(message, dict) and isinstance(message.get("instructions"), list):
        candidates.extend(ix for ix in message["instructions"] if isinstance(ix, dict))
    return candidates


def extract_create_v2(tx: dict[str, Any]) -> CreateV2Args | None:
    """
    Return the first decodable pump.fun create-v2 instruction in the tx, or None.

    Instructions of other programs and undecodable data are skipped;
    instructions without a program id are tried.
    """
    for ix in _candidate_instructions(tx):
        program_id = _program_id(ix)
        if program_id and program_id != PUMP_PROGRAM_ID:
            continue
        data_b58 = _instruction_data(ix)
        if not data_b58:
            continue
        try:
            raw = base58.b58decode(data_b58)
        except ValueError:
            continue
        if not raw.startswith(CREATE_V2_DISCRIMINATOR):
            continue
        try:
            return decode_create_v2(raw)
        except LaunchDecodeError as e:
            logger.warning("create_v2_decode_failed", error=str(e))
            continue
    return None


def pick_mint(tx: dict[str, Any]) -> str | None:
    """New mint from tokenTransfers, falling back to meta.postTokenBalances."""
    transfers = tx.get("tokenTransfers")
    for t in transfers if isinstance(transfers, list) else []:
        mint = t.get("mint") if isinstance(t, dict) else None
        if isinstance(mint, str) and len(mint) >= MIN_MINT_LEN:
            return mint
    meta = tx.get("meta") if isinstance(tx.get("meta"), dict) else {}
    balances = meta.get("postTokenBalances")
    for b in balances if isinstance(balances, list) else []:
        mint = b.get("mint") if isinstance(b, dict) else None
        if isinstance(mint, str) and len(mint) >= MIN_MINT_LEN:
            return mint
    return None


def _signature(tx: dict[str, Any]) -> str | None:
    for key in ("signature", "transactionSignature", "txSignature"):
        value = tx.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def is_failed_transaction(tx: dict[str, Any]) -> bool:
    if tx.get("transactionError"):
        return True
    status = tx.get("status")
    return bool(status) and status != "SUCCESS"


def parse_launch(tx: dict[str, Any], now: float | None = None) -> LaunchEvent | None:
    """
    Parse one webhook transaction into a LaunchEvent.

    Returns None for failed transactions and transactions without a
    create-v2 instruction. Timestamp falls back to blockTime, then now.
    """
    if not isinstance(tx, dict) or is_failed_transaction(tx):
        return None
    args = extract_create_v2(tx)
    if args is None:
        return None
    timestamp = tx.get("timestamp")
    if timestamp is None:
        timestamp = tx.get("blockTime")
    if timestamp is None:
        timestamp = int(now if now is not None else time.time())
    slot = tx.get("slot")
    return LaunchEvent(
        mint=pick_mint(tx),
        name=args.name,
        symbol=args.symbol,
        uri=args.uri,
        creator_hex=args.creator_hex,
        signature=_signature(tx),
        slot=slot if isinstance(slot, int) else None,
        timestamp=timestamp if isinstance(timestamp, (int, float)) else None,
        is_mayhem=args.is_mayhem,
    )


def iter_webhook_transactions(body: Any) -> Iterator[dict[str, Any]]:
    """Webhook bodies arrive as a list, as {transactions: [...]} or as one tx object."""
    if isinstance(body, list):
        txs = body
    elif isinstance(body, dict) and isinstance(body.get("transactions"), list):
        txs = body["transactions"]
    else:
        txs = [body]
    for tx in txs:
        if isinstance(tx, dict):
            yield tx


def dedupe_key(event: LaunchEvent) -> str | None:
    """mint:<mint>, else sig:<signature>, else None (not storable)."""
    if event.mint:
        return f"mint:{event.mint}"
    if event.signature:
        return f"sig:{event.signature}"
    return None
