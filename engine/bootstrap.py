"""
Desk wiring.

build_desk(cfg) creates every service, listener, sink and the inquiry
transport, and links them in a fixed registration order:

    Pricing        -> GUI throttle, Algo streaming
    AlgoStreaming  -> Streaming
    Streaming      -> streaming capture
    Position       -> Risk, position capture
    TradeBooking   -> Position
    Execution      -> TradeBooking, execution capture
    AlgoExecution  -> Execution
    MarketData     -> AlgoExecution
    Risk           -> risk capture
    Inquiry        -> Inquiry auto-quote, inquiry capture

run_feeds(desk) then replays the input files: prices, trades, market data,
inquiries, in that order.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from connectors.feeds import DEFAULT_BOOK_DEPTH, InquiryFeed, MarketDataFeed, PriceFeed, TradeFeed
from connectors.historical_sinks import (
    AppendFileSink,
    ExecutionSink,
    GUIPriceSink,
    InquirySink,
    Now,
    PositionSink,
    RiskSink,
    StreamingSink,
)
from connectors.inquiry_transport import InquiryTransport
from core.config import AppConfig, build_dataclass_config
from core.event_logging import log_event
from core.throttle import Clock, build_throttle_config
from services.algo_execution_service import AlgoExecutionListener, AlgoExecutionService, build_spread_policy
from services.algo_streaming_service import AlgoStreamingListener, AlgoStreamingService, build_size_policy
from services.execution_service import ExecutionListener, ExecutionService, build_venue_rotation
from services.gui_service import GUIService, GUIThrottleListener
from services.historical_data_service import HistoricalDataListener, HistoricalDataService
from services.inquiry_service import DEFAULT_QUOTE_PRICE, InquiryListener, InquiryService
from services.keyed_service import Dispatcher
from services.market_data_service import MarketDataService
from services.position_service import PositionListener, PositionService
from services.pricing_service import PricingService
from services.risk_service import RiskListener, RiskService
from services.streaming_service import StreamingListener, StreamingService
from services.trade_booking_service import TradeBookingListener, TradeBookingService, build_book_rotation

logger = logging.getLogger(__name__)


@dataclass
class FeedsConfig:
    directory: str = "data/feeds"
    prices: str = "prices.txt"
    trades: str = "trades.txt"
    market_data: str = "marketdata.txt"
    inquiries: str = "inquiries.txt"
    book_depth: int = DEFAULT_BOOK_DEPTH


@dataclass
class OutputConfig:
    directory: str = "output"
    timezone: str = "UTC"
    gui: str = "gui.txt"
    streaming: str = "streaming.txt"
    executions: str = "executions.txt"
    positions: str = "positions.txt"
    risk: str = "risk.txt"
    inquiries: str = "allinquiries.txt"


@dataclass
class RoutingConfig:
    venues: List[str] = field(default_factory=lambda: ["BROKERTEC", "ESPEED", "CME"])
    books: List[str] = field(default_factory=lambda: ["TRSY1", "TRSY2", "TRSY3"])


@dataclass
class InquiryConfig:
    quote_price: float = DEFAULT_QUOTE_PRICE


@dataclass
class DispatchConfig:
    max_depth: int = 64
    propagate_errors: bool = False


@dataclass
class TradingDesk:
    dispatcher: Dispatcher
    pricing: PricingService
    algo_streaming: AlgoStreamingService
    streaming: StreamingService
    gui: GUIService
    market_data: MarketDataService
    algo_execution: AlgoExecutionService
    execution: ExecutionService
    trade_booking: TradeBookingService
    position: PositionService
    risk: RiskService
    inquiry: InquiryService
    inquiry_transport: InquiryTransport
    history: Dict[str, HistoricalDataService] = field(default_factory=dict)
    sinks: Dict[str, AppendFileSink] = field(default_factory=dict)
    feeds_config: FeedsConfig = field(default_factory=FeedsConfig)
    output_config: OutputConfig = field(default_factory=OutputConfig)


def build_desk(
    cfg: Optional[AppConfig] = None,
    *,
    feeds_dir: Optional[str | Path] = None,
    output_dir: Optional[str | Path] = None,
    clock: Optional[Clock] = None,
    now: Optional[Now] = None,
) -> TradingDesk:
    """
    Build a fully linked desk.

    Args:
        cfg: Loaded AppConfig; defaults apply for anything missing
        feeds_dir: Overrides feeds.directory
        output_dir: Overrides output.directory
        clock: Monotonic clock for the GUI throttle (seconds)
        now: Wall clock for output timestamps
    """
    cfg = cfg or AppConfig(raw={})
    feeds_cfg = build_dataclass_config(FeedsConfig, cfg.feeds)
    output_cfg = build_dataclass_config(OutputConfig, cfg.output)
    routing_cfg = build_dataclass_config(RoutingConfig, cfg.routing)
    inquiry_cfg = build_dataclass_config(InquiryConfig, cfg.inquiry)
    dispatch_cfg = build_dataclass_config(DispatchConfig, cfg.dispatch)
    if feeds_dir is not None:
        feeds_cfg.directory = str(feeds_dir)
    if output_dir is not None:
        output_cfg.directory = str(output_dir)

    dispatcher = Dispatcher(max_depth=dispatch_cfg.max_depth, propagate_errors=dispatch_cfg.propagate_errors)

    pricing = PricingService(dispatcher=dispatcher)
    algo_streaming = AlgoStreamingService(policy=build_size_policy(cfg.algo_streaming), dispatcher=dispatcher)
    streaming = StreamingService(dispatcher=dispatcher)
    gui = GUIService(config=build_throttle_config(cfg.gui), dispatcher=dispatcher)
    market_data = MarketDataService(dispatcher=dispatcher)
    algo_execution = AlgoExecutionService(policy=build_spread_policy(cfg.algo_execution), dispatcher=dispatcher)
    execution = ExecutionService(dispatcher=dispatcher)
    trade_booking = TradeBookingService(dispatcher=dispatcher)
    position = PositionService(dispatcher=dispatcher)
    risk = RiskService(dispatcher=dispatcher)
    inquiry = InquiryService(dispatcher=dispatcher)
    transport = InquiryTransport()
    transport.bind(inquiry)

    out_dir = Path(output_cfg.directory)
    sink_kwargs: Dict[str, Any] = {"timezone": output_cfg.timezone, "now": now}
    sinks: Dict[str, AppendFileSink] = {
        "gui": GUIPriceSink(out_dir / output_cfg.gui, **sink_kwargs),
        "streaming": StreamingSink(out_dir / output_cfg.streaming, **sink_kwargs),
        "executions": ExecutionSink(out_dir / output_cfg.executions, **sink_kwargs),
        "positions": PositionSink(out_dir / output_cfg.positions, books=routing_cfg.books, **sink_kwargs),
        "risk": RiskSink(out_dir / output_cfg.risk, risk, **sink_kwargs),
        "inquiries": InquirySink(out_dir / output_cfg.inquiries, **sink_kwargs),
    }
    gui.set_sink(sinks["gui"])

    history = {
        "streaming": HistoricalDataService("StreamingHistory", sinks["streaming"], dispatcher=dispatcher),
        "executions": HistoricalDataService("ExecutionHistory", sinks["executions"], dispatcher=dispatcher),
        "positions": HistoricalDataService("PositionHistory", sinks["positions"], dispatcher=dispatcher),
        "risk": HistoricalDataService("RiskHistory", sinks["risk"], dispatcher=dispatcher),
        "inquiries": HistoricalDataService(
            "InquiryHistory",
            sinks["inquiries"],
            key_fn=lambda inq: inq.inquiry_id,
            dispatcher=dispatcher,
        ),
    }

    pricing.add_listener(GUIThrottleListener(gui, clock=clock))
    pricing.add_listener(AlgoStreamingListener(algo_streaming))
    algo_streaming.add_listener(StreamingListener(streaming))
    streaming.add_listener(HistoricalDataListener(history["streaming"]))
    position.add_listener(RiskListener(risk))
    position.add_listener(HistoricalDataListener(history["positions"]))
    trade_booking.add_listener(PositionListener(position))
    execution.add_listener(TradeBookingListener(trade_booking, build_book_rotation(routing_cfg.books)))
    execution.add_listener(HistoricalDataListener(history["executions"]))
    algo_execution.add_listener(ExecutionListener(execution, build_venue_rotation(routing_cfg.venues)))
    market_data.add_listener(AlgoExecutionListener(algo_execution))
    risk.add_listener(HistoricalDataListener(history["risk"]))
    inquiry.add_listener(InquiryListener(inquiry, quote_price=inquiry_cfg.quote_price))
    inquiry.add_listener(HistoricalDataListener(history["inquiries"]))

    log_event(
        "INFO",
        "Desk wired",
        extra={"output": str(out_dir), "feeds": feeds_cfg.directory, "max_depth": dispatch_cfg.max_depth},
    )
    logger.debug("Output config: %s", asdict(output_cfg))

    return TradingDesk(
        dispatcher=dispatcher,
        pricing=pricing,
        algo_streaming=algo_streaming,
        streaming=streaming,
        gui=gui,
        market_data=market_data,
        algo_execution=algo_execution,
        execution=execution,
        trade_booking=trade_booking,
        position=position,
        risk=risk,
        inquiry=inquiry,
        inquiry_transport=transport,
        history=history,
        sinks=sinks,
        feeds_config=feeds_cfg,
        output_config=output_cfg,
    )


def reset_outputs(desk: TradingDesk) -> None:
    """Remove existing output files so a replay starts from empty files."""
    for sink in desk.sinks.values():
        if sink.path.exists():
            sink.path.unlink()
            logger.info("Removed old output %s", sink.path)


def run_feeds(
    desk: TradingDesk,
    cfg: Optional[AppConfig] = None,
    *,
    feeds_dir: Optional[str | Path] = None,
) -> Dict[str, int]:
    """
    Replay all four feeds into the desk.

    Returns:
        Number of records published per feed
    """
    feeds_cfg = build_dataclass_config(FeedsConfig, cfg.feeds) if cfg is not None else desk.feeds_config
    base = Path(feeds_dir) if feeds_dir is not None else Path(feeds_cfg.directory)

    counts: Dict[str, int] = {}
    counts["prices"] = PriceFeed(base / feeds_cfg.prices, desk.pricing).produce()
    counts["trades"] = TradeFeed(base / feeds_cfg.trades, desk.trade_booking).produce()
    counts["market_data"] = MarketDataFeed(
        base / feeds_cfg.market_data,
        desk.market_data,
        book_depth=feeds_cfg.book_depth,
    ).produce()
    counts["inquiries"] = InquiryFeed(base / feeds_cfg.inquiries, desk.inquiry).produce()

    log_event(
        "INFO",
        "Feed replay complete",
        extra={**counts, "callbacks": desk.dispatcher.dispatched, "peak_depth": desk.dispatcher.peak_depth},
    )
    return counts
