import logging

from pricing import LineItem, cents_to_dollars

logger = logging.getLogger(__name__)

MAX_LINE_ITEMS = 50
MAX_QUANTITY = 99
MAX_NAME_LENGTH = 120

# Simple product catalog, prices in cents
PRODUCTS = {
    "linen_shirt": {"name": "Linen Shirt", "unit_amount": 4500, "image": "/images/linen-shirt.jpg"},
    "cabana_shorts": {"name": "Cabana Shorts", "unit_amount": 3000, "image": "/images/cabana-shorts.jpg"},
    "beach_towel": {"name": "Beach Towel", "unit_amount": 2599, "image": None},
}


class CheckoutError(Exception):
    pass


def absolute_image(image, base_url):
    if not image:
        return None
    if image.startswith("http"):
        return image
    return f"{base_url}{image}"


def clamp_quantity(raw):
    try:
        quantity = int(raw if raw is not None else 1)
    except (TypeError, ValueError, OverflowError):
        raise CheckoutError(f"Invalid quantity {raw!r}")
    return max(1, min(MAX_QUANTITY, quantity))


def sanitize_cart(cart, catalog=PRODUCTS):
    """
    Turn a client cart into (sku, quantity, product) rows.

    Prices always come from the catalog; any amount the client sends is ignored.
    """
    if not isinstance(cart, list) or not cart:
        raise CheckoutError("Cart is empty")

    rows = []
    for item in cart[:MAX_LINE_ITEMS]:
        if not isinstance(item, dict):
            raise CheckoutError("Invalid cart item")
        sku = item.get("sku")
        if not isinstance(sku, str):
            raise CheckoutError(f"Invalid product {sku!r}")
        product = catalog.get(sku)
        if not product:
            raise CheckoutError(f"Invalid product {sku}")
        if "unit_amount" in item and item["unit_amount"] != product["unit_amount"]:
            logger.warning("Ignoring client unit_amount %r for %s", item["unit_amount"], sku)
        rows.append((sku, clamp_quantity(item.get("quantity")), product))

    if len(cart) > MAX_LINE_ITEMS:
        logger.warning("Cart truncated from %d to %d line items", len(cart), MAX_LINE_ITEMS)
    return rows


def pricing_line_items(rows):
    return [
        LineItem(price=cents_to_dollars(product["unit_amount"]), quantity=quantity)
        for _, quantity, product in rows
    ]


def stripe_line_items(rows, currency, base_url):
    line_items = []
    for _, quantity, product in rows:
        image = absolute_image(product.get("image"), base_url)
        line_items.append({
            "price_data": {
                "currency": currency.lower(),
                "product_data": {
                    "name": product["name"][:MAX_NAME_LENGTH],
                    "images": [image] if image else [],
                },
                "unit_amount": product["unit_amount"],
            },
            "quantity": quantity,
        })
    return line_items


def shipping_options(totals, currency):
    if totals.shipping_applied_cents == 0:
        display_name, amount = "Free shipping", 0
    else:
        display_name, amount = "Standard shipping", totals.shipping_applied_cents
    return [{
        "shipping_rate_data": {
            "type": "fixed_amount",
            "fixed_amount": {"amount": amount, "currency": currency.lower()},
            "display_name": display_name,
        }
    }]
