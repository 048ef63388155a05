"""Price calculator for print orders."""

from __future__ import annotations

import logging
import math
from typing import Dict, Tuple

from models.order import PriceQuote, PrintOptions


class PriceCalculator:
    """Produces the price quote shown to the customer and to the administrator."""

    # Price per billing unit, by (color_mode, sides)
    UNIT_PRICES: Dict[Tuple[str, str], float] = {
        ("monochrome", "single"): 1.0,
        ("monochrome", "double"): 1.5,
        ("color", "single"): 5.0,
        ("color", "double"): 7.0,
    }
    DEFAULT_UNIT_PRICE = 1.0

    # Flat delivery fee added to every order
    DELIVERY_FEE = 25.0

    def __init__(self, delivery_fee: float = DELIVERY_FEE, currency: str = "EGP") -> None:
        self.delivery_fee = delivery_fee
        self.currency = currency
        self.logger = logging.getLogger(__name__)

    @classmethod
    def unit_price(cls, color_mode: str, sides: str) -> float:
        return cls.UNIT_PRICES.get((color_mode, sides), cls.DEFAULT_UNIT_PRICE)

    @staticmethod
    def billing_units(total_pages: int, sides: str) -> int:
        """Pages for single-sided jobs; physical sheets (pages / 2, rounded up) for duplex."""
        if sides == "double":
            return math.ceil(total_pages / 2)
        return total_pages

    def quote(self, options: PrintOptions, copies: int, total_billed_pages: int) -> PriceQuote:
        unit = self.unit_price(options.color_mode, options.sides)
        units = self.billing_units(total_billed_pages, options.sides)

        printing_cost = round(unit * copies * units, 2)
        grand_total = round(printing_cost + self.delivery_fee, 2)

        self.logger.debug(
            f"Quote inputs: color_mode={options.color_mode}, sides={options.sides}, "
            f"copies={copies}, pages={total_billed_pages}, units={units}"
        )

        return PriceQuote(
            unit_price=unit,
            total_pages=total_billed_pages,
            copies=copies,
            billing_units=units,
            printing_cost=printing_cost,
            delivery_fee=self.delivery_fee,
            grand_total=grand_total,
            currency=self.currency,
            sides=options.sides,
        )
