"""Cart pricing. All money is integer cents."""
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from numbers import Number


class ValidationError(ValueError):
    pass


@dataclass(frozen=True)
class PricingConfig:
    currency: str = "AUD"
    donation_rate: float = 0.10
    free_ship_threshold_cents: int = 20000
    default_shipping_cents: int = 1000

    def __post_init__(self):
        rate = _to_decimal(self.donation_rate, "donation_rate")
        if rate < 0 or rate > 1:
            raise ValidationError("donation_rate must be between 0 and 1")
        _check_cents(self.free_ship_threshold_cents, "free_ship_threshold_cents")
        _check_cents(self.default_shipping_cents, "default_shipping_cents")


@dataclass(frozen=True)
class LineItem:
    price: Number
    quantity: int

    def __post_init__(self):
        if _to_decimal(self.price, "price") < 0:
            raise ValidationError(f"price must be >= 0, got {self.price}")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError(f"quantity must be an integer, got {self.quantity!r}")
        if self.quantity < 1:
            raise ValidationError(f"quantity must be >= 1, got {self.quantity}")

    @classmethod
    def from_dict(cls, raw):
        if not isinstance(raw, dict):
            raise ValidationError(f"line item must be a mapping, got {type(raw).__name__}")
        if "price" not in raw:
            raise ValidationError("line item is missing a price")
        return cls(price=raw["price"], quantity=raw.get("quantity", 1))


@dataclass(frozen=True)
class PricingResult:
    subtotal_cents: int
    discounts_cents: int
    discounted_subtotal_cents: int
    qualifies_free_ship: bool
    shipping_applied_cents: int
    total_cents: int
    donation_cents: int
    remaining_for_free_ship_cents: int
    free_ship_progress_percent: int

    def to_dict(self):
        return asdict(self)


def _to_decimal(value, field):
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}")
    return amount


def _check_cents(value, field):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer number of cents, got {value!r}")
    if value < 0:
        raise ValidationError(f"{field} must be >= 0, got {value}")


DEFAULT_PRICING_CONFIG = PricingConfig()


def dollars_to_cents(dollars):
    """Round a major-unit amount to whole cents, halves away from zero."""
    amount = _to_decimal(dollars, "price") * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_dollars(cents):
    return Decimal(cents) / 100


def format_currency(cents):
    return f"${cents_to_dollars(cents):,.2f}"


def _as_line_item(item):
    if isinstance(item, LineItem):
        return item
    return LineItem.from_dict(item)


def compute_totals(line_items, discounts_cents=0, shipping_cents=None,
                   config=DEFAULT_PRICING_CONFIG):
    """
    Derive the full pricing breakdown for a cart.

    Free shipping is judged on the discounted subtotal, so a discount can
    unlock it. The donation is a share of merchandise only (after discounts,
    before shipping) and is floored so it never exceeds the pledge.

    Raises ValidationError for malformed input. Discounts larger than the
    subtotal and a missing shipping fee are normalized, not rejected.
    """
    if not isinstance(line_items, (list, tuple)):
        raise ValidationError(
            f"line_items must be a list, got {type(line_items).__name__}"
        )
    items = [_as_line_item(item) for item in line_items]
    _check_cents(discounts_cents, "discounts_cents")
    if shipping_cents is not None:
        _check_cents(shipping_cents, "shipping_cents")

    threshold = config.free_ship_threshold_cents

    subtotal = sum(dollars_to_cents(item.price) * item.quantity for item in items)
    discounted = max(0, subtotal - discounts_cents)

    qualifies = discounted >= threshold
    if qualifies:
        shipping = 0
    elif shipping_cents is not None:
        shipping = shipping_cents
    else:
        shipping = config.default_shipping_cents

    donation = int(discounted * Decimal(str(config.donation_rate)))

    if threshold:
        # round half up, in integers
        progress = min(100, (discounted * 200 + threshold) // (2 * threshold))
    else:
        progress = 100

    return PricingResult(
        subtotal_cents=subtotal,
        discounts_cents=discounts_cents,
        discounted_subtotal_cents=discounted,
        qualifies_free_ship=qualifies,
        shipping_applied_cents=shipping,
        total_cents=discounted + shipping,
        donation_cents=donation,
        remaining_for_free_ship_cents=max(0, threshold - discounted),
        free_ship_progress_percent=progress,
    )


def free_ship_message(result):
    if result.remaining_for_free_ship_cents == 0:
        return "You've unlocked free shipping (Australia-wide)!"
    return (
        f"Spend {format_currency(result.remaining_for_free_ship_cents)} "
        "more to unlock free shipping"
    )
