"""Signature Verifiers — pluggable проверка подписи intent.

Единый интерфейс verify(signer, domain_id, message, signature) -> bool,
два варианта:

- Ed25519KeyVerifier: raw-key подписант. Blob подписи =
  public key (32 байта) || signature (64 байта); адрес подписанта
  = последние 20 байт sha3_256(public key).
- ContractSignatureVerifier: подписант-контракт (ERC-1271 style),
  проверка делегируется зарегистрированному объекту.

SignerRouter выбирает вариант по адресу: зарегистрированный контракт →
делегированная проверка, иначе raw-key.
"""

import hashlib
from typing import Dict, Final, Optional, Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature as _CryptoInvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from src.core.domain.units import normalize_address

ED25519_PUBLIC_KEY_LEN: Final[int] = 32
ED25519_SIGNATURE_LEN: Final[int] = 64


@runtime_checkable
class SignatureVerifier(Protocol):
    def verify(self, signer: str, domain_id: bytes, message: bytes, signature: bytes) -> bool:
        ...


@runtime_checkable
class ContractSigner(Protocol):
    """Подписант-контракт: сам решает, валидна ли подпись над digest."""

    def is_valid_signature(self, domain_id: bytes, message: bytes, signature: bytes) -> bool:
        ...


# =============================================================================
# RAW KEY
# =============================================================================


def address_from_public_key(public_key: bytes) -> str:
    """Адрес = последние 20 байт sha3_256(raw public key)."""
    if len(public_key) != ED25519_PUBLIC_KEY_LEN:
        raise ValueError(f"Ed25519 public key must be 32 bytes, got {len(public_key)}")
    return "0x" + hashlib.sha3_256(public_key).digest()[-20:].hex()


def raw_public_key(private_key: ed25519.Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw
    )


def sign_digest(private_key: ed25519.Ed25519PrivateKey, digest: bytes) -> bytes:
    """Blob подписи для Ed25519KeyVerifier (pubkey || signature)."""
    return raw_public_key(private_key) + private_key.sign(digest)


class Ed25519KeyVerifier:
    """Raw-key вариант."""

    def verify(self, signer: str, domain_id: bytes, message: bytes, signature: bytes) -> bool:
        if len(signature) != ED25519_PUBLIC_KEY_LEN + ED25519_SIGNATURE_LEN:
            return False

        public_key = signature[:ED25519_PUBLIC_KEY_LEN]
        raw_signature = signature[ED25519_PUBLIC_KEY_LEN:]

        # Owner binding: public key обязан соответствовать адресу подписанта
        if address_from_public_key(public_key) != normalize_address(signer):
            return False

        try:
            ed25519.Ed25519PublicKey.from_public_bytes(public_key).verify(
                raw_signature, message
            )
        except (_CryptoInvalidSignature, ValueError):
            return False
        return True


# =============================================================================
# CONTRACT
# =============================================================================


class ContractSignatureVerifier:
    """Делегированный вариант: подписи контрактов-подписантов."""

    def __init__(self):
        self._contracts: Dict[str, ContractSigner] = {}

    def register(self, address: str, contract: ContractSigner) -> None:
        self._contracts[normalize_address(address)] = contract

    def unregister(self, address: str) -> None:
        self._contracts.pop(normalize_address(address), None)

    def contract_for(self, address: str) -> Optional[ContractSigner]:
        return self._contracts.get(normalize_address(address))

    def verify(self, signer: str, domain_id: bytes, message: bytes, signature: bytes) -> bool:
        contract = self.contract_for(signer)
        if contract is None:
            return False
        return bool(contract.is_valid_signature(domain_id, message, signature))


class SignerRouter:
    """Выбор варианта проверки по адресу подписанта."""

    def __init__(
        self,
        key_verifier: Optional[SignatureVerifier] = None,
        contract_verifier: Optional[ContractSignatureVerifier] = None,
    ):
        self.key_verifier = key_verifier or Ed25519KeyVerifier()
        self.contract_verifier = contract_verifier or ContractSignatureVerifier()

    def verify(self, signer: str, domain_id: bytes, message: bytes, signature: bytes) -> bool:
        if self.contract_verifier.contract_for(signer) is not None:
            return self.contract_verifier.verify(signer, domain_id, message, signature)
        return self.key_verifier.verify(signer, domain_id, message, signature)
