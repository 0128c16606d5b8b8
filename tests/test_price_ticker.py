import asyncio
import random

from farmdirect.client.price_ticker import perturb_price, perturb_prices, run_ticker


class FixedRandom(random.Random):
    def __init__(self, value):
        super().__init__()
        self.value = value

    def random(self):
        return self.value


def test_upward_tick():
    # delta = (1.0 * 2 - 1) * 0.5 = 0.5
    row = {"commodity": "Tomatoes", "marketPrice": 45, "farmerPrice": 38, "change": 2.5}
    ticked = perturb_price(row, FixedRandom(1.0))
    assert ticked == {"commodity": "Tomatoes", "marketPrice": 46, "farmerPrice": 39, "change": 3.0}
    assert row["marketPrice"] == 45


def test_floors_apply():
    # delta = -0.5
    row = {"marketPrice": 10, "farmerPrice": 8, "change": 0}
    ticked = perturb_price(row, FixedRandom(0.0))
    assert ticked["marketPrice"] == 10
    assert ticked["farmerPrice"] == 9
    assert ticked["change"] == -0.5


def test_perturb_prices_keeps_order():
    rows = [{"commodity": c, "marketPrice": 40, "change": 0} for c in ("A", "B", "C")]
    assert [r["commodity"] for r in perturb_prices(rows, random.Random(7))] == ["A", "B", "C"]


def test_run_ticker_applies_ticks():
    board = {"prices": [{"commodity": "Rice", "marketPrice": 45, "change": 0}]}

    def set_prices(prices):
        board["prices"] = prices

    ticks = asyncio.run(run_ticker(lambda: board["prices"], set_prices, interval=0, rng=FixedRandom(1.0), max_ticks=3))
    assert ticks == 3
    assert board["prices"][0]["marketPrice"] == 48
    assert board["prices"][0]["change"] == 1.5
