"""Nonce Store — keyed counter (signer, key) → следующее ожидаемое значение.

consume() атомарно возвращает предыдущее значение и увеличивает счётчик,
поэтому из двух конкурирующих intent с одинаковым nonce успешным может
быть только один. Потреблённый nonce не возвращается даже если дальнейшая
проверка intent не прошла.
"""

import threading
from typing import Dict, Tuple

from src.core.domain.units import normalize_address


class NonceStore:
    """Хранилище nonce per (signer, key)."""

    def __init__(self):
        self._counters: Dict[Tuple[str, int], int] = {}
        self._lock = threading.Lock()

    def nonces(self, signer: str, key: int) -> int:
        """Текущее (ещё не использованное) значение nonce."""
        return self._counters.get((normalize_address(signer), key), 0)

    def consume(self, signer: str, key: int) -> int:
        """
        Consume-and-return-previous.

        Returns:
            Значение nonce до инкремента
        """
        slot = (normalize_address(signer), key)
        with self._lock:
            previous = self._counters.get(slot, 0)
            self._counters[slot] = previous + 1
        return previous
