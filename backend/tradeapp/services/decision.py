"""End-to-end trading decision: bars -> strategy signal -> sized order -> risk gate."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from tradecore.errors import UpstreamUnavailableError
from tradecore.models import (
    Action,
    BarSeries,
    CandidateOrder,
    OrderSide,
    RiskVerdict,
    Signal,
    TradeStatistics,
)
from tradecore.ports import AccountRepository, MarketDataSource, StrategyConfigStore
from tradecore.risk import recommend_from_statistics
from tradecore.strategy import canonical_name, create_strategy
from tradeapp.config import Settings, get_settings
from tradeapp.services.gatekeeper import OrderGatekeeper

logger = logging.getLogger(__name__)

# Order quantity precision
QUANTITY_STEP = Decimal("0.00000001")


@dataclass(frozen=True, slots=True)
class Decision:
    """Outcome of one decision cycle. ``order`` is None when no order was proposed."""

    signal: Signal
    order: CandidateOrder | None = None
    verdict: RiskVerdict | None = None
    order_id: str | None = None

    @property
    def submitted(self) -> bool:
        return self.order_id is not None


class TradingDecisionService:
    """
    Runs a user's configured strategy on one symbol and routes the result.

    Args:
        market_data: Bars and latest prices
        config_store: Per-user strategy parameters
        accounts: Balance used for sizing
        gatekeeper: Risk gate + submitter, serialised per user
        settings: Timeframe, bar limit and confidence floor
    """

    def __init__(
        self,
        market_data: MarketDataSource,
        config_store: StrategyConfigStore,
        accounts: AccountRepository,
        gatekeeper: OrderGatekeeper,
        settings: Settings | None = None,
    ):
        self._market_data = market_data
        self._config_store = config_store
        self._accounts = accounts
        self._gatekeeper = gatekeeper
        self._settings = settings or get_settings()
        self._statistics: dict[str, TradeStatistics] = {}

    def statistics(self, strategy: str) -> TradeStatistics:
        return self._statistics.get(canonical_name(strategy), TradeStatistics())

    def record_trade(self, strategy: str, profit: Decimal) -> TradeStatistics:
        """Fold a closed trade into the strategy's sizing history."""
        key = canonical_name(strategy)
        stats = self.statistics(key).record(profit)
        self._statistics[key] = stats
        return stats

    async def _fetch_prices(self, symbols: tuple[str, ...]) -> dict[str, Decimal]:
        results = await asyncio.gather(
            *(self._market_data.get_price(s) for s in symbols),
            return_exceptions=True,
        )
        prices: dict[str, Decimal] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, UpstreamUnavailableError):
                # Strategy reports the missing leg itself
                logger.warning("Price unavailable for %s: %s", symbol, result)
            elif isinstance(result, BaseException):
                raise result
            else:
                prices[symbol] = result
        return prices

    async def evaluate(
        self,
        user_id: str,
        strategy_name: str,
        symbol: str,
        timeframe: str | None = None,
    ) -> Signal:
        """Evaluate the user's strategy on the latest bars, without trading."""
        params = await self._config_store.get_strategy_config(user_id, strategy_name)
        strategy = create_strategy(strategy_name, params)
        timeframe = timeframe or self._settings.default_timeframe

        if strategy.min_bars > 0:
            limit = max(self._settings.bar_limit, strategy.min_bars)
            series = await self._market_data.get_bars(symbol, timeframe, limit)
        else:
            series = BarSeries(symbol=symbol, timeframe=timeframe)

        prices = await self._fetch_prices(strategy.required_prices)
        signal = strategy.evaluate(symbol, series, prices)
        logger.info(
            "%s %s %s: %s (%.2f) %s",
            strategy.name, symbol, timeframe, signal.action.value, signal.confidence, signal.reason,
        )
        return signal

    async def size_order(self, user_id: str, signal: Signal) -> CandidateOrder | None:
        """Kelly-sized order for an actionable signal, or None if it can't be sized."""
        balance = await self._accounts.get_balance(user_id)
        fraction = recommend_from_statistics(self.statistics(signal.strategy))
        if balance <= 0 or signal.price is None or signal.price <= 0:
            logger.warning("Cannot size %s order for user %s: balance=%s", signal.symbol, user_id, balance)
            return None
        # Round down so the notional never exceeds balance * fraction
        quantity = (balance * fraction / signal.price).quantize(QUANTITY_STEP, rounding=ROUND_DOWN)
        if quantity <= 0:
            logger.warning("Order for %s rounds to zero quantity", signal.symbol)
            return None
        return CandidateOrder(
            symbol=signal.symbol,
            side=OrderSide(signal.action.value),
            quantity=quantity,
            price=signal.price,
            strategy=signal.strategy,
        )

    async def decide(
        self,
        user_id: str,
        strategy_name: str,
        symbol: str,
        timeframe: str | None = None,
    ) -> Decision:
        """
        Evaluate, size and (if the risk gate approves) submit an order.

        A strategy the user has disabled yields a HOLD decision without
        reading market data.

        Raises:
            UnknownStrategyError: If the strategy is not registered
            InvalidParameterError: If the user's stored parameters are invalid
            UpstreamUnavailableError: If bars or account state can't be read
        """
        name = canonical_name(strategy_name)
        if not await self._config_store.is_strategy_enabled(user_id, name):
            logger.info("%s disabled for user %s, not trading %s", name, user_id, symbol)
            return Decision(signal=Signal(
                strategy=name, symbol=symbol, action=Action.HOLD, reason="Strategy disabled",
            ))

        try:
            signal = await self.evaluate(user_id, strategy_name, symbol, timeframe)
        except UpstreamUnavailableError:
            logger.error("Market data unavailable for %s %s", strategy_name, symbol)
            raise

        if not signal.is_actionable or signal.confidence < self._settings.min_confidence:
            return Decision(signal=signal)

        order = await self.size_order(user_id, signal)
        if order is None:
            return Decision(signal=signal)

        result = await self._gatekeeper.submit(user_id, order)
        return Decision(signal=signal, order=order, verdict=result.verdict, order_id=result.order_id)
