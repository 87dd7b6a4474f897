"""Typed Digest — детерминированный hash signing payload.

digest = sha3_256(domain_separator || type_tag || canonical_json(payload))

- domain_separator = sha3_256(DOMAIN_TAG || chain_id (u64 BE) || engine_address)
- type_tag = b"deposit" / b"withdraw"
- canonical_json: sorted keys, compact separators, UTF-8

Payload валидируется по JSON Schema контракту до hashing, так что
невалидный intent не может получить digest.
"""

import hashlib
import json
from typing import Any, Dict, Final

from src.core.contracts import validate_intent_payload
from src.core.domain.orders import SignedIntent
from src.core.domain.units import normalize_address

DOMAIN_TAG: Final[bytes] = b"broker-settlement.intent/v1"


def canonical_json(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def domain_separator(chain_id: int, engine_address: str) -> bytes:
    """
    32-байтовый domain separator, привязанный к (tag, chain_id, engine).

    Raises:
        ValueError: Если chain_id вне u64
    """
    if chain_id < 0 or chain_id > (1 << 64) - 1:
        raise ValueError(f"chain_id out of u64 range: {chain_id}")
    engine = bytes.fromhex(normalize_address(engine_address)[2:])
    return hashlib.sha3_256(DOMAIN_TAG + chain_id.to_bytes(8, "big") + engine).digest()


def intent_digest(intent: SignedIntent, engine_address: str) -> bytes:
    """
    Typed digest подписанного intent.

    chain_id берётся из самого intent: подпись под чужой chain даёт другой
    digest, а несовпадение chain отклоняется IntentVerifier отдельно.

    Raises:
        jsonschema.ValidationError: Если payload нарушает контракт
    """
    payload = intent.signing_payload()
    validate_intent_payload(payload)
    separator = domain_separator(intent.chain_id, engine_address)
    type_tag = intent.order.intent_type.encode("ascii")
    return hashlib.sha3_256(separator + type_tag + canonical_json(payload)).digest()
