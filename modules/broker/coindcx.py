"""
broker/coindcx.py
-----------------
CoinDCX spot account: signed balance reads and batch market orders.

Without an API key *and* secret the adapter runs dry: it returns a fixed
mock portfolio and marks every order EXECUTED with a ``MOCK-`` id, and
never touches the network. With credentials, read failures fall back to
the same mock portfolio and submission failures mark the whole batch
FAILED. Nothing is retried.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
from pydantic import BaseModel, ConfigDict, TypeAdapter

from core.errors import PROVIDER_FAILURES, ExternalProviderError
from models.order import Order
from models.portfolio import Portfolio
from modules.broker.base import BaseBroker
from modules.broker.precision import PrecisionCache, round_quantity
from utils import signing
from utils.http import DEFAULT_TIMEOUT_SECONDS, request_json, session_scope
from utils.logger import setup_logger

DEFAULT_BASE_URL = "https://api.coindcx.com"
DEFAULT_PORTFOLIO_PATH = "/exchange/v1/users/balances"
DEFAULT_ORDER_PATH = "/exchange/v1/orders/create_multiple"
DEFAULT_MARKET_DETAILS_PATH = "/exchange/v1/market_details"

ORDER_TYPE = "market_order"
ECODE = "I"

MOCK_BALANCES: Dict[str, float] = {"BTC": 0.0, "INR": 10000.0}


# ---------------------------- wire shapes --------------------------------- #
class _Balance(BaseModel):
    currency: str
    balance: float = 0.0
    locked_balance: float = 0.0


class _OrderInfo(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    client_order_id: Optional[str] = None
    status: Optional[str] = None
    market: Optional[str] = None


class _OrderListResponse(BaseModel):
    orders: List[_OrderInfo] = []


class _MarketDetail(BaseModel):
    symbol: Optional[str] = None
    target_currency_precision: int = 8


_BALANCES = TypeAdapter(List[_Balance])
_MARKET_DETAILS = TypeAdapter(List[_MarketDetail])


def mock_portfolio() -> Portfolio:
    return Portfolio(balances=dict(MOCK_BALANCES))


# ---------------------------- broker -------------------------------------- #
class CoinDCXBroker(BaseBroker):
    name = "CoinDCXBroker"

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        base_url: str = DEFAULT_BASE_URL,
        *,
        portfolio_path: str = DEFAULT_PORTFOLIO_PATH,
        order_path: str = DEFAULT_ORDER_PATH,
        market_details_path: str = DEFAULT_MARKET_DETAILS_PATH,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.api_key = api_key or ""
        self.api_secret = api_secret or ""
        self.base_url = base_url.rstrip("/")
        self.portfolio_path = portfolio_path
        self.order_path = order_path
        self.market_details_path = market_details_path
        self.timeout = timeout
        self._session = session
        self.logger = logger or setup_logger(self.name)
        self.precisions = PrecisionCache(self._fetch_market_precisions)

    @property
    def dry_run(self) -> bool:
        return not (self.api_key and self.api_secret)

    # ------------------------------------------------------------------ #
    # Portfolio
    # ------------------------------------------------------------------ #
    async def get_portfolio(self) -> Portfolio:
        if self.dry_run:
            return mock_portfolio()
        try:
            data = await self._signed_post(self.portfolio_path, {"timestamp": signing.stamp()})
            balances = _BALANCES.validate_python(data)
            return Portfolio(
                balances={b.currency: b.balance for b in balances if b.balance > 0}
            )
        except PROVIDER_FAILURES as exc:
            self.logger.error("Error fetching CoinDCX portfolio: %s", exc)
            return mock_portfolio()

    # ------------------------------------------------------------------ #
    # Orders
    # ------------------------------------------------------------------ #
    async def place_orders(self, orders: Sequence[Order]) -> List[Order]:
        results = list(orders)
        open_idx = [i for i, order in enumerate(orders) if not order.is_terminal]
        if len(open_idx) < len(results):
            self.logger.warning(
                "Ignoring %d order(s) already in a terminal state", len(results) - len(open_idx)
            )
        if not open_idx:
            return results

        batch = [orders[i] for i in open_idx]
        if self.dry_run:
            self.logger.warning("Credentials missing. Mocking batch orders.")
            settled = [o.mark_executed(f"MOCK-{uuid.uuid4()}") for o in batch]
        else:
            settled = await self._submit_batch(batch)

        for i, order in zip(open_idx, settled):
            results[i] = order
        return results

    async def refresh_market_precisions(self) -> None:
        await self.precisions.refresh()

    async def _submit_batch(self, batch: List[Order]) -> List[Order]:
        await self.precisions.ensure_loaded()
        timestamp = signing.stamp()

        settled: List[Order] = list(batch)
        submitted: List[int] = []
        wire_orders: List[Dict[str, Any]] = []
        for i, order in enumerate(batch):
            precision = self.precisions.precision_for(order.symbol)
            try:
                quantity = round_quantity(order.quantity, precision)
            except ArithmeticError as exc:
                # decimal.InvalidOperation: too many digits, or not finite
                self.logger.error(
                    "Cannot round quantity %s for %s: %r", order.quantity, order.symbol, exc
                )
                settled[i] = order.mark_failed(
                    f"quantity {order.quantity} cannot be rounded at precision {precision}"
                )
                continue
            if quantity <= 0:
                settled[i] = order.mark_failed(
                    f"quantity {order.quantity} rounds to zero at precision {precision}"
                )
                continue
            cid = signing.new_client_order_id()
            settled[i] = order.with_submission(float(quantity), cid)
            submitted.append(i)
            wire_orders.append(
                {
                    "side": order.type.value.lower(),
                    "order_type": ORDER_TYPE,
                    "market": order.symbol,
                    "total_quantity": quantity,
                    "timestamp": timestamp,
                    "ecode": ECODE,
                    "client_order_id": cid,
                }
            )

        if not wire_orders:
            return settled

        pending = [settled[i] for i in submitted]
        try:
            data = await self._signed_post(self.order_path, {"orders": wire_orders})
            response = _OrderListResponse.model_validate(data)
        except ExternalProviderError as exc:
            if exc.is_client_error:
                self.logger.error("CoinDCX Batch Order Error (%s): %s", exc.status, exc.body)
                reason = exc.body or str(exc)
            else:
                self.logger.error("Error executing batch orders: %s", exc)
                reason = str(exc)
            outcome = [o.mark_failed(reason) for o in pending]
        except PROVIDER_FAILURES as exc:
            self.logger.error("Error executing batch orders: %s", exc)
            outcome = [o.mark_failed(str(exc)) for o in pending]
        else:
            outcome = self._correlate(pending, response.orders)

        for i, order in zip(submitted, outcome):
            settled[i] = order
        return settled

    def _correlate(self, pending: List[Order], entries: List[_OrderInfo]) -> List[Order]:
        """Match response entries to submitted orders.

        Entries echoing a known ``client_order_id`` are matched first. Each
        remaining entry i settles order i when that order is still open,
        otherwise the first order nothing has settled yet. Orders no entry
        lands on stay PENDING.
        """
        by_cid = {o.client_order_id: i for i, o in enumerate(pending)}
        outcome = list(pending)
        matched = set()

        positional = []
        for position, entry in enumerate(entries):
            idx = by_cid.get(entry.client_order_id) if entry.client_order_id else None
            if idx is None:
                positional.append((position, entry))
            elif idx not in matched:
                matched.add(idx)
                outcome[idx] = pending[idx].mark_executed(entry.id)

        for position, entry in positional:
            if position < len(pending) and position not in matched:
                idx = position
            else:
                idx = next((i for i in range(len(pending)) if i not in matched), None)
            if idx is None:
                break
            matched.add(idx)
            outcome[idx] = pending[idx].mark_executed(entry.id)

        self.logger.info(
            "Successfully executed %d/%d batch orders", len(matched), len(pending)
        )
        if len(matched) < len(pending):
            self.logger.warning(
                "%d order(s) had no matching response entry and remain PENDING",
                len(pending) - len(matched),
            )
        return outcome

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #
    async def _signed_post(self, path: str, payload: Dict[str, Any]) -> Any:
        body = signing.serialize_body(payload)
        headers = signing.signed_headers(body, self.api_key, self.api_secret)
        self.logger.debug("CoinDCX POST %s %s", path, body)
        async with session_scope(self._session) as session:
            return await request_json(
                session,
                "POST",
                self.base_url + path,
                data=body.encode(),
                headers=headers,
                timeout=self.timeout,
            )

    async def _fetch_market_precisions(self) -> Dict[str, int]:
        async with session_scope(self._session) as session:
            data = await request_json(
                session, "GET", self.base_url + self.market_details_path, timeout=self.timeout
            )
        details = _MARKET_DETAILS.validate_python(data)
        return {d.symbol: d.target_currency_precision for d in details if d.symbol}
