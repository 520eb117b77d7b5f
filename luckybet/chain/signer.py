import base64
import hashlib
import json
import time
from typing import Optional

import base58
from solders.keypair import Keypair

from luckybet.constants import BET_ACTION


def load_keypair(private_key: str) -> Keypair:
    """Base58 ed25519 secret: 64 byte keypair or 32 byte seed."""
    try:
        raw = base58.b58decode(private_key.strip())
    except ValueError as e:
        raise ValueError(f"private key is not base58: {e}") from e
    if len(raw) not in (32, 64):
        raise ValueError(f"private key must be 32 or 64 bytes, got {len(raw)}")
    try:
        if len(raw) == 64:
            return Keypair.from_bytes(raw)
        return Keypair.from_seed(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"bad private key: {e}") from e


def public_key_of(kp: Keypair) -> str:
    return str(kp.pubkey())


def build_bet_tx(
    contract: str,
    account: str,
    lucky_number: int,
    bet_amount: int,
    nonce: int,
    chain_id: int,
    gas_ratio: float,
    gas_limit: int,
    expiration_seconds: int,
    now_ns: Optional[int] = None,
) -> dict:
    now_ns = now_ns or time.time_ns()
    return {
        "time": now_ns,
        "expiration": now_ns + expiration_seconds * 10**9,
        "gas_ratio": gas_ratio,
        "gas_limit": gas_limit,
        "delay": 0,
        "chain_id": chain_id,
        "actions": [{
            "contract": contract,
            "action_name": BET_ACTION,
            "data": json.dumps([account, lucky_number, bet_amount, nonce]),
        }],
        "amount_limit": [{"token": "iost", "value": str(bet_amount)}],
        "publisher": account,
        "signers": [],
        "signatures": [],
    }


def tx_digest(tx: dict) -> bytes:
    body = {k: v for k, v in tx.items() if k != "publisher_sigs"}
    return hashlib.sha3_256(json.dumps(body, sort_keys=True, separators=(",", ":")).encode()).digest()


def sign_tx(tx: dict, kp: Keypair) -> dict:
    sig = kp.sign_message(tx_digest(tx))
    signed = dict(tx)
    signed["publisher_sigs"] = [{
        "algorithm": "ED25519",
        "public_key": base64.b64encode(bytes(kp.pubkey())).decode(),
        "signature": base64.b64encode(bytes(sig)).decode(),
    }]
    return signed
