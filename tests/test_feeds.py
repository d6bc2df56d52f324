"""
Tests for connectors/feeds.py - flat-file inbound feeds.
"""

import pytest

from connectors.feeds import InquiryFeed, MarketDataFeed, PriceFeed, TradeFeed, parse_price
from core.errors import MalformedPriceError
from core.models import InquiryState, PricingSide, Side
from services.market_data_service import MarketDataService
from services.pricing_service import PricingService
from services.trade_booking_service import TradeBookingService

US2Y, US5Y = "91282CJL6", "91282CJN2"


def write(tmp_path, name, lines):
    path = tmp_path / name
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class TestParsePrice:
    """Test parse_price helper."""

    def test_fractional_and_decimal(self):
        """Test both fractional and plain decimal notation decode."""
        assert parse_price("99-16+") == 99.515625
        assert parse_price(" 100.25 ") == 100.25

    def test_garbage(self):
        """Test unparseable text raises MalformedPriceError."""
        with pytest.raises(MalformedPriceError):
            parse_price("ninety-nine")
        with pytest.raises(MalformedPriceError):
            parse_price("abc")

    @pytest.mark.parametrize("text", ["nan", "inf", "-inf", "1e400"])
    def test_non_finite_rejected(self, text):
        """Test NaN and infinite prices are rejected."""
        with pytest.raises(MalformedPriceError):
            parse_price(text)


class TestPriceFeed:
    """Test PriceFeed reader."""

    def test_mid_and_spread_from_bid_ask(self, tmp_path):
        """Test mid and spread are derived from bid/ask columns."""
        path = write(tmp_path, "prices.txt", ["cusip,bid,ask", f"{US2Y},99-000,99-002"])

        [price] = list(PriceFeed(path).records())

        assert price.product.product_id == US2Y
        assert price.mid == 99 + 1 / 256
        assert price.bid_offer_spread == 2 / 256

    def test_bad_rows_are_skipped(self, tmp_path, caplog):
        """Test malformed rows and unknown CUSIPs are logged and skipped."""
        path = write(
            tmp_path,
            "prices.txt",
            [
                "cusip,bid,ask",
                f"{US2Y},99-000,99-002",
                f"{US2Y},99-0x0,99-002",
                "UNKNOWN1,99-000,99-002",
                f"{US2Y},99-000",
                "",
                f" {US5Y} , 100-000 , 100-004 ",
            ],
        )
        pricing = PricingService()
        feed = PriceFeed(path, pricing)

        assert feed.produce() == 2
        assert feed.stats.skipped == 3
        assert pricing.get(US5Y).mid == 100 + 2 / 256
        assert "prices.txt:3" in caplog.text
        assert "prices.txt:4" in caplog.text

    def test_non_finite_prices_are_skipped(self, tmp_path):
        """Test a nan/inf row never reaches the pricing service."""
        path = write(
            tmp_path,
            "prices.txt",
            ["cusip,bid,ask", f"{US2Y},nan,inf", f"{US5Y},100-000,100-004"],
        )
        pricing = PricingService()
        feed = PriceFeed(path, pricing)

        assert feed.produce() == 1
        assert feed.stats.skipped == 1
        assert pricing.lookup(US2Y) is None
        assert pricing.get(US5Y).mid == 100 + 2 / 256

    def test_header_is_optional(self, tmp_path):
        """Test a file without a header row still parses."""
        path = write(tmp_path, "prices.txt", [f"{US2Y},99-000,99-002"])
        assert len(list(PriceFeed(path).records())) == 1

    def test_missing_file_publishes_nothing(self, tmp_path):
        """Test a missing feed file replays zero records."""
        assert PriceFeed(tmp_path / "nope.txt", PricingService()).produce() == 0

    def test_produce_without_service(self, tmp_path):
        """Test produce() requires a target service."""
        path = write(tmp_path, "prices.txt", [f"{US2Y},99-000,99-002"])
        with pytest.raises(RuntimeError):
            PriceFeed(path).produce()


class TestTradeFeed:
    """Test TradeFeed reader."""

    def test_parses_trades(self, tmp_path):
        """Test trade rows parse and bad sides are skipped."""
        path = write(
            tmp_path,
            "trades.txt",
            [
                "cusip,tradeId,price,book,quantity,side",
                f"{US5Y},T1,99-16+,TRSY2,1000000,BUY",
                f"{US5Y},T2,99-160,TRSY1,500000,sell",
                f"{US5Y},T3,99-160,TRSY1,500000,HOLD",
            ],
        )
        feed = TradeFeed(path)
        trades = list(feed.records())

        assert [t.trade_id for t in trades] == ["T1", "T2"]
        assert trades[0].price == 99.515625
        assert trades[0].book == "TRSY2"
        assert trades[1].side is Side.SELL
        assert feed.stats.skipped == 1

    def test_overflowing_quantity_skips_row(self, tmp_path):
        """Test an infinite quantity is skipped and the replay carries on."""
        path = write(
            tmp_path,
            "trades.txt",
            [
                f"{US5Y},T1,99-160,TRSY1,inf,BUY",
                f"{US5Y},T2,99-160,TRSY1,1e400,BUY",
                f"{US5Y},T3,99-160,TRSY1,1000000,BUY",
            ],
        )
        booking = TradeBookingService()
        feed = TradeFeed(path, booking)

        assert feed.produce() == 1
        assert feed.stats.skipped == 2
        assert booking.keys() == ["T3"]

    def test_fractional_quantity_is_rejected(self, tmp_path):
        """Test a fractional quantity is skipped, not truncated."""
        path = write(
            tmp_path,
            "trades.txt",
            [f"{US5Y},T1,99-160,TRSY1,1.9,BUY", f"{US5Y},T2,99-160,TRSY1,2e6,SELL"],
        )
        booking = TradeBookingService()
        feed = TradeFeed(path, booking)

        assert feed.produce() == 1
        assert booking.lookup("T1") is None
        assert booking.get("T2").quantity == 2_000_000


class TestMarketDataFeed:
    """Test MarketDataFeed run grouping."""

    def rows(self, cusip, bid_prices, offer_prices):
        lines = [f"{cusip},{p},1000000,BID" for p in bid_prices]
        lines += [f"{cusip},{p},2000000,OFFER" for p in offer_prices]
        return lines

    def test_each_run_is_one_book(self, tmp_path):
        """Test every 2 x depth rows form one order book."""
        lines = ["cusip,price,quantity,side"]
        lines += self.rows(US2Y, ["99-000", "98-310"], ["99-002", "99-004"])
        lines += self.rows(US5Y, ["100-000", "99-310"], ["100-002", "100-004"])
        path = write(tmp_path, "marketdata.txt", lines)
        service = MarketDataService()

        count = MarketDataFeed(path, service, book_depth=2).produce()

        assert count == 2
        book = service.get(US2Y)
        assert [o.price for o in book.bid_stack] == [99.0, 98 + 31 / 32]
        assert all(o.side is PricingSide.OFFER for o in book.offer_stack)
        assert len(service.get(US5Y).offer_stack) == 2

    def test_bad_row_discards_whole_run(self, tmp_path):
        """Test one bad row drops the whole book."""
        good = self.rows(US5Y, ["100-000", "99-310"], ["100-002", "100-004"])
        bad = self.rows(US2Y, ["99-000", "garbage"], ["99-002", "99-004"])
        path = write(tmp_path, "marketdata.txt", bad + good)
        feed = MarketDataFeed(path, book_depth=2)

        books = list(feed.records())

        assert [b.product.product_id for b in books] == [US5Y]
        assert feed.stats.skipped == 4

    def test_non_finite_quantity_discards_run(self, tmp_path):
        """Test an infinite level quantity drops the book instead of aborting."""
        bad = self.rows(US2Y, ["99-000", "98-310"], ["99-002", "99-004"])
        bad[1] = f"{US2Y},98-310,inf,BID"
        good = self.rows(US5Y, ["100-000", "99-310"], ["100-002", "100-004"])
        path = write(tmp_path, "marketdata.txt", bad + good)
        feed = MarketDataFeed(path, book_depth=2)

        books = list(feed.records())

        assert [b.product.product_id for b in books] == [US5Y]

    def test_mixed_cusips_in_run_is_rejected(self, tmp_path):
        """Test a run spanning two CUSIPs is rejected."""
        lines = [f"{US2Y},99-000,1,BID", f"{US5Y},99-000,1,BID", f"{US2Y},99-002,1,OFFER", f"{US2Y},99-004,1,OFFER"]
        path = write(tmp_path, "marketdata.txt", lines)
        assert list(MarketDataFeed(path, book_depth=2).records()) == []

    def test_incomplete_trailing_run_is_dropped(self, tmp_path):
        """Test a short final run is dropped."""
        lines = self.rows(US2Y, ["99-000", "98-310"], ["99-002", "99-004"]) + [f"{US5Y},100-000,1,BID"]
        path = write(tmp_path, "marketdata.txt", lines)
        feed = MarketDataFeed(path, book_depth=2)

        assert len(list(feed.records())) == 1
        assert feed.stats.skipped == 1

    def test_book_depth_must_be_positive(self, tmp_path):
        """Test book_depth below 1 is refused."""
        with pytest.raises(ValueError):
            MarketDataFeed(tmp_path / "x.txt", book_depth=0)


class TestInquiryFeed:
    """Test InquiryFeed reader."""

    def test_parses_inquiries(self, tmp_path):
        """Test inquiry rows parse and unknown states are skipped."""
        path = write(
            tmp_path,
            "inquiries.txt",
            [
                "inquiryId,cusip,side,quantity,price,state",
                f"INQ1,{US2Y},BUY,1000000,99-16+,RECEIVED",
                f"INQ2,{US2Y},SELL,2000000,99-000,WAITING",
            ],
        )
        feed = InquiryFeed(path)
        [inq] = list(feed.records())

        assert inq.inquiry_id == "INQ1"
        assert inq.side is Side.BUY
        assert inq.quantity == 1_000_000
        assert inq.price == 99.515625
        assert inq.state is InquiryState.RECEIVED
        assert feed.stats.skipped == 1
