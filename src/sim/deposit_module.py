"""
Simulated Deposit Module — vault с фиксированными ценами активов.

Цена актива задаётся в WAD: liquidity_units = amount * price / WAD.
Shares:
- первый mint: shares = liquidity_units
- далее: shares = liquidity_units * total_supply / total_assets (вниз)

Вывод — обратная операция: liquidity_units = shares * total_assets / total_supply,
amount = liquidity_units * WAD / price. Округление всегда в пользу vault.

Актив хранится на адресе Fund; bribes, отправленные туда движком,
не меняют total_assets (чистый донат).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

from src.core.domain.units import WAD, normalize_address
from src.core.math.fixed_point import mul_div_down
from src.settlement.interfaces import VaultState
from src.sim.token_ledger import InMemoryTokenLedger

log = logging.getLogger(__name__)


class DepositModuleError(ValueError):
    """Отказ Deposit Module (неизвестный актив, slippage, пустой vault)."""


@dataclass
class SimulatedDepositModule:
    ledger: InMemoryTokenLedger
    fund_address: str
    share_token: str
    operator: str
    prices: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        self.fund_address = normalize_address(self.fund_address)
        self.share_token = normalize_address(self.share_token)
        self.operator = normalize_address(self.operator)
        self.prices = {normalize_address(a): p for a, p in self.prices.items()}
        self._total_assets = 0

    def set_price(self, asset: str, price_wad: int) -> None:
        if price_wad <= 0:
            raise ValueError(f"price must be positive, got {price_wad}")
        self.prices[normalize_address(asset)] = price_wad

    def _price(self, asset: str) -> int:
        try:
            return self.prices[normalize_address(asset)]
        except KeyError:
            raise DepositModuleError(f"asset {asset} is not supported by the vault") from None

    def fund(self) -> str:
        return self.fund_address

    def get_vault(self) -> str:
        return self.share_token

    def internal_vault(self) -> VaultState:
        return VaultState(
            total_supply=self.ledger.total_supply(self.share_token),
            total_assets=self._total_assets,
        )

    def deposit(
        self, asset: str, amount: int, min_shares_out: int, recipient: str
    ) -> Tuple[int, int]:
        liquidity_units = mul_div_down(amount, self._price(asset), WAD)
        supply = self.ledger.total_supply(self.share_token)
        if supply == 0 or self._total_assets == 0:
            shares_out = liquidity_units
        else:
            shares_out = mul_div_down(liquidity_units, supply, self._total_assets)

        if shares_out < min_shares_out:
            raise DepositModuleError(f"shares out {shares_out} below minimum {min_shares_out}")

        self.ledger.transfer(asset, self.operator, self.fund_address, amount)
        self.ledger.mint(self.share_token, recipient, shares_out)
        self._total_assets += liquidity_units

        log.debug("Vault deposit: %d of %s -> %d shares", amount, asset, shares_out)
        return shares_out, liquidity_units

    def withdraw(
        self, asset: str, shares: int, min_amount_out: int, recipient: str
    ) -> Tuple[int, int]:
        price = self._price(asset)
        supply = self.ledger.total_supply(self.share_token)
        if supply == 0:
            raise DepositModuleError("vault has no shares outstanding")

        liquidity_units = mul_div_down(shares, self._total_assets, supply)
        amount_out = mul_div_down(liquidity_units, WAD, price)
        if amount_out < min_amount_out:
            raise DepositModuleError(f"amount out {amount_out} below minimum {min_amount_out}")

        self.ledger.burn(self.share_token, self.operator, shares)
        self._total_assets -= liquidity_units
        self.ledger.transfer(asset, self.fund_address, recipient, amount_out)

        log.debug("Vault withdraw: %d shares -> %d of %s", shares, amount_out, asset)
        return amount_out, liquidity_units

    def donate(self, asset: str, amount: int, donor: str) -> int:
        """Доход vault без выпуска shares (растёт цена share). Returns: liquidity units."""
        liquidity_units = mul_div_down(amount, self._price(asset), WAD)
        self.ledger.transfer(asset, donor, self.fund_address, amount)
        self._total_assets += liquidity_units
        return liquidity_units

    def dilute(self, share_amount: int, recipient: str) -> None:
        self.ledger.mint(self.share_token, recipient, share_amount)

    def snapshot(self) -> int:
        return self._total_assets

    def restore(self, snapshot: int) -> None:
        self._total_assets = snapshot
