"""Intent Verifier — проверка подписанного intent.

Порядок проверок validate_intent:
1. chain_id intent == chain исполнения (защита от cross-chain replay)
2. claimed nonce == consumed nonce (вызывающий уже атомарно потребил nonce
   и передаёт значение до инкремента)
3. подпись валидна над typed digest для signer (raw-key или контракт)

Каждая проверка даёт свою ошибку. Частичных эффектов нет, кроме
потреблённого nonce, который не возвращается.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.domain.orders import SignedIntent
from src.core.errors import InvalidSignature, NonceMismatch, WrongChainId
from src.intents.digest import domain_separator, intent_digest
from src.intents.nonce_store import NonceStore
from src.intents.signers import SignatureVerifier, SignerRouter

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedIntent:
    """Intent, прошедший все проверки."""

    intent: SignedIntent
    digest: bytes
    consumed_nonce: int


class IntentVerifier:
    """Проверка подписанных intent для одного chain и одного движка."""

    def __init__(
        self,
        chain_id: int,
        engine_address: str,
        nonce_store: Optional[NonceStore] = None,
        signature_verifier: Optional[SignatureVerifier] = None,
    ):
        self.chain_id = chain_id
        self.engine_address = engine_address
        self.nonce_store = nonce_store or NonceStore()
        self.signature_verifier = signature_verifier or SignerRouter()
        self.domain_id = domain_separator(chain_id, engine_address)

    def validate_intent(
        self,
        digest: bytes,
        signature: bytes,
        signer: str,
        chain_id: int,
        consumed_nonce: int,
        claimed_nonce: int,
    ) -> None:
        """
        Raises:
            WrongChainId: chain_id не совпадает с chain исполнения
            NonceMismatch: claimed_nonce != consumed_nonce (replay)
            InvalidSignature: подпись не проходит проверку
        """
        if chain_id != self.chain_id:
            raise WrongChainId(
                f"intent chain {chain_id} != execution chain {self.chain_id}",
                data={"chain_id": chain_id, "expected": self.chain_id},
            )

        if claimed_nonce != consumed_nonce:
            raise NonceMismatch(
                f"nonce {claimed_nonce} does not match expected {consumed_nonce}",
                data={"signer": signer, "claimed": claimed_nonce, "expected": consumed_nonce},
            )

        if not self.signature_verifier.verify(signer, self.domain_id, digest, signature):
            raise InvalidSignature(
                f"signature does not verify for {signer}", data={"signer": signer}
            )

    def verify(self, intent: SignedIntent) -> VerifiedIntent:
        """
        Потребление nonce (signer, account_id) и проверка intent.

        Nonce потребляется ДО проверок и не возвращается при ошибке:
        сожжённый nonce нельзя использовать даже исправленным intent.
        """
        digest = intent_digest(intent, self.engine_address)
        consumed = self.nonce_store.consume(intent.signer, intent.account_id)
        self.validate_intent(
            digest=digest,
            signature=intent.signature,
            signer=intent.signer,
            chain_id=intent.chain_id,
            consumed_nonce=consumed,
            claimed_nonce=intent.nonce,
        )
        log.debug(
            "Intent verified: signer=%s account=%d nonce=%d",
            intent.signer,
            intent.account_id,
            consumed,
        )
        return VerifiedIntent(intent=intent, digest=digest, consumed_nonce=consumed)
