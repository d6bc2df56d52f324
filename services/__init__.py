"""
Desk services package

Every service is a KeyedService: a keyed map plus an ordered list of
listeners. Services are chained by registering one service's listener on
another service.

Available Services:
- PricingService: Latest two-way price per instrument
- AlgoStreamingService / StreamingService: Two-sided quote streams
- GUIService: Throttled price publication
- MarketDataService: Order books, best bid/offer, depth aggregation
- AlgoExecutionService: Spread-crossing execution algorithm
- ExecutionService: Venue routing
- TradeBookingService: Trade booking into TRSY books
- PositionService: Per-book positions
- RiskService: PV01 per instrument and per sector bucket
- InquiryService: Client inquiry state machine
- HistoricalDataService: Output capture
"""

from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener
from services.pricing_service import PricingService
from services.algo_streaming_service import AlgoStreamingListener, AlgoStreamingService, AlternatingSizePolicy
from services.streaming_service import StreamingListener, StreamingService
from services.gui_service import GUIService, GUIThrottleListener
from services.market_data_service import MarketDataService
from services.algo_execution_service import AlgoExecutionListener, AlgoExecutionService, SpreadCrossingPolicy
from services.execution_service import ExecutionListener, ExecutionService
from services.trade_booking_service import TradeBookingListener, TradeBookingService
from services.position_service import PositionListener, PositionService
from services.risk_service import RiskListener, RiskService
from services.inquiry_service import InquiryListener, InquiryService
from services.historical_data_service import HistoricalDataListener, HistoricalDataService

__all__ = [
    "Dispatcher",
    "KeyedService",
    "ServiceEvent",
    "ServiceListener",
    "PricingService",
    "AlgoStreamingListener",
    "AlgoStreamingService",
    "AlternatingSizePolicy",
    "StreamingListener",
    "StreamingService",
    "GUIService",
    "GUIThrottleListener",
    "MarketDataService",
    "AlgoExecutionListener",
    "AlgoExecutionService",
    "SpreadCrossingPolicy",
    "ExecutionListener",
    "ExecutionService",
    "TradeBookingListener",
    "TradeBookingService",
    "PositionListener",
    "PositionService",
    "RiskListener",
    "RiskService",
    "InquiryListener",
    "InquiryService",
    "HistoricalDataListener",
    "HistoricalDataService",
]
