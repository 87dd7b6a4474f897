"""Intents — проверка подписанных intent и защита от replay.

- NonceStore: (signer, key) → nonce, атомарный consume
- intent_digest: typed digest с domain separation по chain и движку
- SignatureVerifier: raw-key (Ed25519) и contract-подписанты
- IntentVerifier: chain id → nonce → подпись
"""

from .digest import DOMAIN_TAG, canonical_json, domain_separator, intent_digest
from .nonce_store import NonceStore
from .signers import (
    ContractSignatureVerifier,
    ContractSigner,
    Ed25519KeyVerifier,
    SignatureVerifier,
    SignerRouter,
    address_from_public_key,
    raw_public_key,
    sign_digest,
)
from .verifier import IntentVerifier, VerifiedIntent

__all__ = [
    "DOMAIN_TAG",
    "canonical_json",
    "domain_separator",
    "intent_digest",
    "NonceStore",
    "SignatureVerifier",
    "ContractSigner",
    "ContractSignatureVerifier",
    "Ed25519KeyVerifier",
    "SignerRouter",
    "address_from_public_key",
    "raw_public_key",
    "sign_digest",
    "IntentVerifier",
    "VerifiedIntent",
]
