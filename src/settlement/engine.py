"""Settlement Engine — депозиты, выводы, fees и жизненный цикл счетов.

Оркестрирует:
- IntentVerifier (подписанные пути: nonce → chain id → подпись)
- BrokerAccountRegistry + AssetPolicyStore (авторизация)
- Fee Calculator (entrance / exit / performance / management)
- DepositModule (asset ↔ shares), TransferAuthorization, TokenGateway

Поток депозита:
GATE 0 deadline → [intent] → account → GATE 1 access → GATE 2 policy →
management fee accrual → MAX resolution → GATE 3 coverage → pull asset →
tip / bribe → Deposit Module mint → GATE 4 mint limit → entrance fees →
GATE 5 slippage → распределение shares → counters → DepositSettled

Атомарность: каждый вызов выполняется в call scope: non-blocking lock
повторного входа плюс snapshot реестра, policy, собственного состояния
и всех коллабораторов, поддерживающих SupportsSnapshot. Любая ошибка откатывает их целиком.
NonceStore в scope не входит: потреблённый nonce не возвращается.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Union

from src.core.domain.broker_account import (
    AssetDirection,
    BrokerAccount,
    OpenAccountParams,
)
from src.core.domain.events import (
    AccountEvent,
    AccountEventKind,
    DepositSettled,
    ManagementFeeAccrued,
    SettlementResult,
    WithdrawSettled,
)
from src.core.domain.orders import (
    DepositIntentOrder,
    DepositOrder,
    SignedIntent,
    WithdrawIntentOrder,
    WithdrawOrder,
)
from src.core.domain.units import MAX_UINT, is_zero_address, normalize_address
from src.core.errors import (
    AccountExpired,
    AccountNotActive,
    AccountNotTransferable,
    AmountBelowMinimum,
    ConfigurationError,
    NotAccountOwner,
    ReentrantCall,
    SettlementError,
    Unauthorized,
)
from src.core.math.fees import (
    calculate_entrance_fees,
    calculate_management_fee_shares,
    calculate_withdrawal_fees,
    split_fees_to_assets,
)
from src.intents.nonce_store import NonceStore
from src.intents.signers import SignatureVerifier
from src.intents.verifier import IntentVerifier
from src.registry.account_registry import BrokerAccountRegistry
from src.registry.policy_store import AssetPolicyStore
from src.registry.state_machine import LifecycleAction
from src.settlement.config import EngineConfig
from src.settlement.gates import (
    Gate00Deadline,
    Gate01AccountAccess,
    Gate02AssetPolicy,
    Gate03AmountCoverage,
    Gate04ShareLimits,
    Gate05Slippage,
)
from src.settlement.interfaces import (
    DepositModule,
    SupportsSnapshot,
    TokenGateway,
    TransferAuthorization,
)

log = logging.getLogger(__name__)

SettlementEvent = Union[
    DepositSettled, WithdrawSettled, AccountEvent, ManagementFeeAccrued
]


class SettlementEngine:
    """Движок расчётов брокерских счетов."""

    def __init__(
        self,
        config: EngineConfig,
        deposit_module: DepositModule,
        transfer_authority: TransferAuthorization,
        token_gateway: TokenGateway,
        registry: Optional[BrokerAccountRegistry] = None,
        policy_store: Optional[AssetPolicyStore] = None,
        nonce_store: Optional[NonceStore] = None,
        signature_verifier: Optional[SignatureVerifier] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = config
        self.deposit_module = deposit_module
        self.transfer_authority = transfer_authority
        self.token_gateway = token_gateway
        self.registry = registry or BrokerAccountRegistry()
        self.policy_store = policy_store or AssetPolicyStore()
        self._clock = clock or (lambda: int(time.time()))

        self.intent_verifier = IntentVerifier(
            chain_id=config.chain_id,
            engine_address=config.engine_address,
            nonce_store=nonce_store,
            signature_verifier=signature_verifier,
        )

        self.gate00 = Gate00Deadline()
        self.gate01 = Gate01AccountAccess()
        self.gate02 = Gate02AssetPolicy(self.policy_store)
        self.gate03 = Gate03AmountCoverage()
        self.gate04 = Gate04ShareLimits()
        self.gate05 = Gate05Slippage()

        self._management_fee_rate_bps = config.management_fee_rate_bps
        self._last_management_accrual = self._clock()
        self._events: List[SettlementEvent] = []
        self._call_lock = threading.Lock()

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def address(self) -> str:
        return self.config.engine_address

    @property
    def events(self) -> List[SettlementEvent]:
        return list(self._events)

    @property
    def management_fee_rate_bps(self) -> int:
        return self._management_fee_rate_bps

    @property
    def last_management_accrual(self) -> int:
        return self._last_management_accrual

    def get_account_info(self, account_id: int) -> BrokerAccount:
        return self.registry.get(account_id)

    def nonces(self, signer: str, account_id: int) -> int:
        return self.intent_verifier.nonce_store.nonces(signer, account_id)

    def is_asset_permitted(self, account_id: int, asset: str, direction: AssetDirection) -> bool:
        return self.policy_store.is_permitted(account_id, asset, direction)

    # =========================================================================
    # CALL SCOPE
    # =========================================================================

    def _participants(self) -> List[SupportsSnapshot]:
        candidates: List[Any] = [
            self.registry,
            self.policy_store,
            self.deposit_module,
            self.transfer_authority,
            self.token_gateway,
        ]
        seen = set()
        participants = []
        for candidate in candidates:
            if id(candidate) in seen or not isinstance(candidate, SupportsSnapshot):
                continue
            seen.add(id(candidate))
            participants.append(candidate)
        return participants

    @contextmanager
    def _call_scope(self, operation: str) -> Iterator[None]:
        """Guard повторного входа + snapshot/restore при любой ошибке.

        Lock не реентерабелен и берётся без ожидания: вложенный вызов из
        коллаборатора и параллельный вызов из другого потока отклоняются.
        """
        if not self._call_lock.acquire(blocking=False):
            raise ReentrantCall(f"{operation} called while another call is in progress")

        try:
            participants = self._participants()
            snapshots = [p.snapshot() for p in participants]
            own_state = (
                self._management_fee_rate_bps,
                self._last_management_accrual,
                len(self._events),
            )
            try:
                yield
            except Exception as e:
                for participant, snap in zip(participants, snapshots):
                    participant.restore(snap)
                rate, last_accrual, events_len = own_state
                self._management_fee_rate_bps = rate
                self._last_management_accrual = last_accrual
                del self._events[events_len:]

                if isinstance(e, SettlementError):
                    log.warning("%s rejected: %s", operation, e)
                else:
                    log.warning("%s failed: %s: %s", operation, type(e).__name__, e)
                raise
        finally:
            self._call_lock.release()

    def _now(self) -> int:
        return int(self._clock())

    # =========================================================================
    # ACCOUNT ADMINISTRATION
    # =========================================================================

    def _require_manager(self, caller: str) -> None:
        if not self.config.is_manager(caller):
            raise Unauthorized(f"{caller} is not an admin or manager", data={"caller": caller})

    def _require_owner_or_manager(self, caller: str, account_id: int) -> None:
        if self.registry.is_owner(account_id, caller) or self.config.is_manager(caller):
            return
        raise NotAccountOwner(
            f"{caller} is neither owner of account {account_id} nor a manager",
            data={"account_id": account_id, "caller": caller},
        )

    def _require_configurable(self, account: BrokerAccount, now: int) -> None:
        """Настройки счёта меняются только пока он активен и не истёк."""
        if not account.is_active:
            raise AccountNotActive(
                f"account {account.account_id} is {account.state.value}",
                data={"account_id": account.account_id},
            )
        if account.is_expired(now):
            raise AccountExpired(
                f"account {account.account_id} expired at {account.expiration_timestamp}",
                data={"account_id": account.account_id},
            )

    def _emit(self, event: SettlementEvent) -> None:
        self._events.append(event)

    def _account_event(
        self, kind: AccountEventKind, account_id: int, actor: str, now: int, **details: Any
    ) -> None:
        self._emit(
            AccountEvent(
                kind=kind, account_id=account_id, actor=actor, details=details, timestamp=now
            )
        )

    def open_account(self, caller: str, params: OpenAccountParams) -> int:
        """
        Открытие брокерского счёта (admin / manager).

        Returns:
            Новый account_id
        """
        caller = normalize_address(caller)
        with self._call_scope("open_account"):
            self._require_manager(caller)
            now = self._now()
            account_id = self.registry.open_account(params, now)
            self._account_event(
                AccountEventKind.OPENED, account_id, caller, now, owner=params.user
            )
            return account_id

    def close_account(self, caller: str, account_id: int) -> None:
        """Закрытие (только при 0 outstanding shares): burn ownership, CLOSED."""
        caller = normalize_address(caller)
        with self._call_scope("close_account"):
            self._require_owner_or_manager(caller, account_id)
            self.registry.apply_lifecycle(account_id, LifecycleAction.CLOSE)
            self._account_event(AccountEventKind.CLOSED, account_id, caller, self._now())

    def pause_account(self, caller: str, account_id: int) -> None:
        caller = normalize_address(caller)
        with self._call_scope("pause_account"):
            self._require_manager(caller)
            self.registry.apply_lifecycle(account_id, LifecycleAction.PAUSE)
            self._account_event(AccountEventKind.PAUSED, account_id, caller, self._now())

    def unpause_account(self, caller: str, account_id: int) -> None:
        caller = normalize_address(caller)
        with self._call_scope("unpause_account"):
            self._require_manager(caller)
            self.registry.apply_lifecycle(account_id, LifecycleAction.UNPAUSE)
            self._account_event(AccountEventKind.UNPAUSED, account_id, caller, self._now())

    def transfer_account(self, caller: str, account_id: int, new_owner: str) -> None:
        """Передача ownership token (только владелец, только transferable)."""
        caller = normalize_address(caller)
        with self._call_scope("transfer_account"):
            account = self.registry.get(account_id)
            self.registry.require_owner(account_id, caller)
            if not account.transferable:
                raise AccountNotTransferable(
                    f"account {account_id} is not transferable",
                    data={"account_id": account_id},
                )
            updated = self.registry.transfer_ownership(account_id, new_owner)
            self._account_event(
                AccountEventKind.TRANSFERRED,
                account_id,
                caller,
                self._now(),
                new_owner=updated.owner,
            )

    def set_broker_fee_recipient(self, caller: str, account_id: int, recipient: str) -> None:
        caller = normalize_address(caller)
        with self._call_scope("set_broker_fee_recipient"):
            now = self._now()
            account = self.registry.get(account_id)
            self._require_owner_or_manager(caller, account_id)
            self._require_configurable(account, now)

            recipient = normalize_address(recipient)
            if is_zero_address(recipient):
                raise ConfigurationError("fee recipient cannot be the zero address")

            self.registry.commit(account.model_copy(update={"fee_recipient": recipient}))
            self._account_event(
                AccountEventKind.FEE_RECIPIENT_SET, account_id, caller, now, recipient=recipient
            )

    def enable_broker_asset_policy(
        self, caller: str, account_id: int, asset: str, direction: AssetDirection
    ) -> None:
        self._set_asset_policy(caller, account_id, asset, direction, enabled=True)

    def disable_broker_asset_policy(
        self, caller: str, account_id: int, asset: str, direction: AssetDirection
    ) -> None:
        self._set_asset_policy(caller, account_id, asset, direction, enabled=False)

    def _set_asset_policy(
        self,
        caller: str,
        account_id: int,
        asset: str,
        direction: AssetDirection,
        enabled: bool,
    ) -> None:
        caller = normalize_address(caller)
        operation = "enable_broker_asset_policy" if enabled else "disable_broker_asset_policy"
        with self._call_scope(operation):
            now = self._now()
            account = self.registry.get(account_id)
            self._require_owner_or_manager(caller, account_id)
            self._require_configurable(account, now)

            if enabled:
                self.policy_store.enable(account_id, asset, direction)
                kind = AccountEventKind.POLICY_ENABLED
            else:
                self.policy_store.disable(account_id, asset, direction)
                kind = AccountEventKind.POLICY_DISABLED
            self._account_event(
                kind,
                account_id,
                caller,
                now,
                asset=normalize_address(asset),
                direction=direction.value,
            )

    # =========================================================================
    # MANAGEMENT FEE
    # =========================================================================

    def set_management_fee_rate_bps(self, caller: str, rate_bps: int) -> None:
        """
        Новая годовая ставка management fee (только admin).

        Период до смены ставки начисляется по старой ставке.
        """
        caller = normalize_address(caller)
        with self._call_scope("set_management_fee_rate_bps"):
            if caller != self.config.admin:
                raise Unauthorized(f"{caller} is not the admin", data={"caller": caller})
            if not 0 <= rate_bps <= self.config.max_management_fee_bps:
                raise ConfigurationError(
                    f"management fee rate {rate_bps} bps outside "
                    f"[0, {self.config.max_management_fee_bps}]"
                )
            self._accrue_management_fee(self._now())
            self._management_fee_rate_bps = rate_bps
            log.info("Management fee rate set to %d bps", rate_bps)

    def skim_management_fee(self) -> int:
        """Начислить management fee сейчас. Returns: diluted shares."""
        with self._call_scope("skim_management_fee"):
            return self._accrue_management_fee(self._now())

    def _accrue_management_fee(self, now: int) -> int:
        """
        Ленивое начисление management fee через dilution.

        Таймстамп начисления сдвигается при каждой попытке, даже если
        начислять нечего (пустой vault или нулевая ставка).
        """
        last = self._last_management_accrual
        elapsed = now - last if now > last else 0
        self._last_management_accrual = max(now, last)

        if elapsed == 0 or self._management_fee_rate_bps == 0:
            return 0

        vault = self.deposit_module.internal_vault()
        if vault.total_assets == 0 or vault.total_supply == 0:
            return 0

        fee_shares = calculate_management_fee_shares(
            vault.total_supply, self._management_fee_rate_bps, elapsed
        )
        if fee_shares == 0:
            return 0

        recipient = self.config.protocol_fee_recipient
        self.deposit_module.dilute(fee_shares, recipient)
        self._emit(
            ManagementFeeAccrued(
                fee_shares=fee_shares,
                recipient=recipient,
                elapsed_seconds=elapsed,
                rate_bps=self._management_fee_rate_bps,
                timestamp=now,
            )
        )
        log.debug("Management fee accrued: %d shares over %ds", fee_shares, elapsed)
        return fee_shares

    # =========================================================================
    # DEPOSIT
    # =========================================================================

    def deposit(self, caller: str, order: DepositOrder) -> SettlementResult:
        """Депозит владельцем / любым адресом для публичного счёта (payer = caller)."""
        caller = normalize_address(caller)
        with self._call_scope("deposit"):
            now = self._now()
            self.gate00.evaluate(order.deadline, now).raise_if_blocked()
            return self._settle_deposit(payer=caller, order=order, now=now)

    def intent_deposit(self, relayer: str, intent: SignedIntent) -> SettlementResult:
        """Депозит по подписанному intent; relayer получает tip."""
        relayer = normalize_address(relayer)
        order = intent.order
        if not isinstance(order, DepositIntentOrder):
            raise TypeError("intent_deposit requires a deposit intent")

        with self._call_scope("intent_deposit"):
            now = self._now()
            self.gate00.evaluate(order.deadline, now).raise_if_blocked()
            self.intent_verifier.verify(intent)
            return self._settle_deposit(
                payer=order.user,
                order=order,
                now=now,
                relayer=relayer,
                relayer_tip=order.relayer_tip,
                bribe=order.bribe,
            )

    def _settle_deposit(
        self,
        payer: str,
        order: DepositOrder,
        now: int,
        relayer: Optional[str] = None,
        relayer_tip: int = 0,
        bribe: int = 0,
    ) -> SettlementResult:
        engine = self.address
        account = self.registry.get(order.account_id)

        self.gate01.evaluate(
            account, self.registry.is_owner(account.account_id, payer), AssetDirection.DEPOSIT, now
        ).raise_if_blocked()
        self.gate02.evaluate(account.account_id, order.asset, AssetDirection.DEPOSIT).raise_if_blocked()

        # Существующие holders не размываются стоимостью входящего депозита
        self._accrue_management_fee(now)

        amount = order.amount
        if amount == MAX_UINT:
            amount = self.token_gateway.balance_of(order.asset, payer)
        self.gate03.evaluate(amount, bribe=bribe, relayer_tip=relayer_tip).raise_if_blocked()

        net_amount = amount - bribe - relayer_tip
        if net_amount == 0:
            raise AmountBelowMinimum(
                "nothing left to deposit after bribe and relayer tip",
                data={"amount": amount, "bribe": bribe, "relayer_tip": relayer_tip},
            )

        self.transfer_authority.transfer_from(payer, engine, amount, order.asset)
        if relayer_tip and relayer is not None:
            self.token_gateway.transfer(order.asset, engine, relayer, relayer_tip)
        if bribe:
            self.token_gateway.transfer(order.asset, engine, self.deposit_module.fund(), bribe)

        shares_out, liquidity_units = self.deposit_module.deposit(
            order.asset, net_amount, order.min_shares_out, engine
        )
        if shares_out == 0:
            raise AmountBelowMinimum(
                "deposit mints no shares at the current share price",
                data={"amount": net_amount, "liquidity_units": liquidity_units},
            )
        self.gate04.evaluate_mint(account, shares_out).raise_if_blocked()

        split = calculate_entrance_fees(shares_out, account.fees)
        if split.user_shares == 0:
            raise AmountBelowMinimum(
                "entrance fees consume all minted shares",
                data={"shares_out": shares_out},
            )
        self.gate05.evaluate(split.user_shares, order.min_shares_out, "shares").raise_if_blocked()

        share_token = self.deposit_module.get_vault()
        self._pay(share_token, order.recipient, split.user_shares)
        self._pay(share_token, account.fee_recipient, split.broker_fee_shares)
        self._pay(share_token, self.config.protocol_fee_recipient, split.protocol_fee_shares)

        self.registry.commit(account.with_deposit(shares_out, liquidity_units))

        self._emit(
            DepositSettled(
                account_id=account.account_id,
                payer=payer,
                recipient=order.recipient,
                asset=order.asset,
                amount=amount,
                shares_minted=shares_out,
                liquidity_units=liquidity_units,
                user_shares=split.user_shares,
                broker_fee_shares=split.broker_fee_shares,
                protocol_fee_shares=split.protocol_fee_shares,
                relayer_tip=relayer_tip,
                bribe=bribe,
                timestamp=now,
            )
        )
        log.info(
            "Deposit settled: account=%d payer=%s amount=%d shares=%d (user=%d broker=%d protocol=%d)",
            account.account_id,
            payer,
            amount,
            shares_out,
            split.user_shares,
            split.broker_fee_shares,
            split.protocol_fee_shares,
        )
        return SettlementResult(
            account_id=account.account_id,
            shares_out=shares_out,
            assets_out=0,
            user_amount=split.user_shares,
            broker_fee=split.broker_fee_shares,
            protocol_fee=split.protocol_fee_shares,
            relayer_tip=relayer_tip,
            bribe=bribe,
            liquidity_units=liquidity_units,
        )

    # =========================================================================
    # WITHDRAW
    # =========================================================================

    def withdraw(self, caller: str, order: WithdrawOrder) -> SettlementResult:
        """Вывод: burn shares плательщика (payer = caller), актив получателю."""
        caller = normalize_address(caller)
        with self._call_scope("withdraw"):
            now = self._now()
            self.gate00.evaluate(order.deadline, now).raise_if_blocked()
            return self._settle_withdraw(payer=caller, order=order, now=now)

    def intent_withdraw(self, relayer: str, intent: SignedIntent) -> SettlementResult:
        """Вывод по подписанному intent; net payout обязан покрыть bribe + tip."""
        relayer = normalize_address(relayer)
        order = intent.order
        if not isinstance(order, WithdrawIntentOrder):
            raise TypeError("intent_withdraw requires a withdraw intent")

        with self._call_scope("intent_withdraw"):
            now = self._now()
            self.gate00.evaluate(order.deadline, now).raise_if_blocked()
            self.intent_verifier.verify(intent)
            return self._settle_withdraw(
                payer=order.user,
                order=order,
                now=now,
                relayer=relayer,
                relayer_tip=order.relayer_tip,
                bribe=order.bribe,
            )

    def _settle_withdraw(
        self,
        payer: str,
        order: WithdrawOrder,
        now: int,
        relayer: Optional[str] = None,
        relayer_tip: int = 0,
        bribe: int = 0,
    ) -> SettlementResult:
        engine = self.address
        account = self.registry.get(order.account_id)

        self.gate01.evaluate(
            account, self.registry.is_owner(account.account_id, payer), AssetDirection.WITHDRAW, now
        ).raise_if_blocked()
        self.gate02.evaluate(account.account_id, order.asset, AssetDirection.WITHDRAW).raise_if_blocked()

        self._accrue_management_fee(now)

        share_token = self.deposit_module.get_vault()
        shares = order.shares
        if shares == MAX_UINT:
            shares = self.token_gateway.balance_of(share_token, payer)
        self.gate03.evaluate(shares).raise_if_blocked()
        self.gate04.evaluate_burn(account, shares).raise_if_blocked()

        self.transfer_authority.transfer_from(payer, engine, shares, share_token)
        assets_out, liquidity_units = self.deposit_module.withdraw(
            order.asset, shares, order.min_amount_out, engine
        )

        fees = calculate_withdrawal_fees(account, shares, liquidity_units)
        broker_fee, protocol_fee = split_fees_to_assets(fees, assets_out, liquidity_units)
        user_assets = assets_out - broker_fee - protocol_fee

        if bribe or relayer_tip:
            self.gate03.evaluate(
                user_assets, bribe=bribe, relayer_tip=relayer_tip, require_positive=False
            ).raise_if_blocked()
        user_net = user_assets - bribe - relayer_tip
        self.gate05.evaluate(user_net, order.min_amount_out, "assets").raise_if_blocked()

        self._pay(order.asset, order.recipient, user_net)
        self._pay(order.asset, account.fee_recipient, broker_fee)
        self._pay(order.asset, self.config.protocol_fee_recipient, protocol_fee)
        if relayer is not None:
            self._pay(order.asset, relayer, relayer_tip)
        self._pay(order.asset, self.deposit_module.fund(), bribe)

        self.registry.commit(account.with_burn(shares))

        self._emit(
            WithdrawSettled(
                account_id=account.account_id,
                payer=payer,
                recipient=order.recipient,
                asset=order.asset,
                shares_burnt=shares,
                liquidity_units=liquidity_units,
                assets_out=assets_out,
                user_assets=user_net,
                broker_fee=broker_fee,
                protocol_fee=protocol_fee,
                relayer_tip=relayer_tip,
                bribe=bribe,
                timestamp=now,
            )
        )
        log.info(
            "Withdraw settled: account=%d payer=%s shares=%d assets=%d (user=%d broker=%d protocol=%d)",
            account.account_id,
            payer,
            shares,
            assets_out,
            user_net,
            broker_fee,
            protocol_fee,
        )
        return SettlementResult(
            account_id=account.account_id,
            shares_out=0,
            assets_out=assets_out,
            user_amount=user_net,
            broker_fee=broker_fee,
            protocol_fee=protocol_fee,
            relayer_tip=relayer_tip,
            bribe=bribe,
            liquidity_units=liquidity_units,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _pay(self, token: str, recipient: str, amount: int) -> None:
        if amount > 0:
            self.token_gateway.transfer(token, self.address, recipient, amount)

