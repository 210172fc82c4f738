import logging

import stripe
from flask import Flask, render_template, request, jsonify, abort
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import config
from checkout import (
    PRODUCTS,
    CheckoutError,
    sanitize_cart,
    pricing_line_items,
    stripe_line_items,
    shipping_options,
)
from models import Base, Order
from pricing import ValidationError, compute_totals, free_ship_message

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

PRICING_CONFIG = config.load_pricing_config()

# Setup DB
engine = create_engine(config.DATABASE_URL)
Base.metadata.create_all(engine)
DBSession = sessionmaker(bind=engine)

# Flask app
app = Flask(__name__)


@app.errorhandler(ValidationError)
def validation_failed(error):
    return jsonify({"error": str(error)}), 400


@app.errorhandler(CheckoutError)
def checkout_rejected(error):
    return jsonify({"error": str(error)}), 400


@app.route("/")
def index():
    return render_template("index.html", products=PRODUCTS)


@app.route("/api/cart/totals", methods=["POST"])
def cart_totals():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    totals = compute_totals(
        data.get("lineItems"),
        discounts_cents=data.get("discountsCents", 0),
        shipping_cents=data.get("shippingCents"),
        config=PRICING_CONFIG,
    )
    payload = totals.to_dict()
    payload["currency"] = PRICING_CONFIG.currency
    payload["message"] = free_ship_message(totals)
    return jsonify(payload)


@app.route("/api/flags", methods=["GET"])
def get_flags():
    return jsonify(config.resolve_flags(request.args, request.cookies))


@app.route("/api/flags", methods=["POST"])
def set_flags():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    overrides = {
        config.FLAG_COOKIE_PREFIX + key: "true" if config.to_boolean(data[key]) else "false"
        for key, _ in config.FLAGS.values()
        if key in data
    }
    response = jsonify(config.resolve_flags(cookies={**request.cookies, **overrides}))
    for name, value in overrides.items():
        response.set_cookie(name, value)
    return response


@app.route("/create-checkout-session", methods=["POST"])
def create_checkout_session():
    if not config.server_checkout_enabled():
        return jsonify({"error": "Checkout is currently disabled"}), 503

    secret_key = config.stripe_secret_key()
    if not secret_key:
        return jsonify({"error": "Stripe is not configured"}), 503

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise CheckoutError("Request body must be a JSON object")
    rows = sanitize_cart(data.get("cart", []))
    totals = compute_totals(pricing_line_items(rows), config=PRICING_CONFIG)
    currency = PRICING_CONFIG.currency.lower()

    with DBSession() as db:
        # Create local Order in DB (initially pending)
        order = Order(
            product_sku=",".join(sku for sku, _, _ in rows),
            quantity=sum(quantity for _, quantity, _ in rows),
            subtotal_cents=totals.discounted_subtotal_cents,
            shipping_cents=totals.shipping_applied_cents,
            total_cents=totals.total_cents,
            donation_cents=totals.donation_cents,
            currency=currency,
            status="pending",
        )
        db.add(order)
        db.commit()

        success_url, cancel_url = config.checkout_urls(config.DOMAIN)
        try:
            session = stripe.checkout.Session.create(
                api_key=secret_key,
                mode="payment",
                line_items=stripe_line_items(rows, currency, config.DOMAIN),
                shipping_options=shipping_options(totals, currency),
                allow_promotion_codes=True,
                billing_address_collection="auto",
                shipping_address_collection={"allowed_countries": ["AU", "NZ", "US", "GB", "CA"]},
                success_url=success_url,
                cancel_url=cancel_url,
                client_reference_id=str(order.id),
                metadata={"order_id": str(order.id)},
            )
        except stripe.StripeError:
            logger.exception("Stripe session error for order %s", order.id)
            order.status = "failed"
            db.commit()
            return jsonify({"error": "Unable to create checkout session"}), 500

        # Save Stripe session ID to DB
        order.stripe_session_id = session.id
        db.commit()
        logger.info("Order %s: checkout session %s for %d cents", order.id, session.id, order.total_cents)

    return jsonify({"url": session.url, "id": session.id})


@app.route("/webhook", methods=["POST"])
def webhook_received():
    webhook_secret = config.stripe_webhook_secret()
    if not webhook_secret:
        return jsonify({"error": "Stripe webhook is not configured"}), 503

    payload = request.data
    sig_header = request.headers.get("Stripe-Signature")
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except (ValueError, stripe.SignatureVerificationError):
        logger.warning("Rejected webhook with invalid payload or signature")
        abort(400)

    if event["type"] == "checkout.session.completed":
        session_obj = event["data"]["object"]
        order_id = session_obj.get("client_reference_id")
        if order_id:
            with DBSession() as db:
                order = db.get(Order, int(order_id))
                if order:
                    order.status = "paid"
                    db.commit()
                    logger.info("Order %s marked as paid.", order.id)
                else:
                    logger.warning("Webhook for unknown order %s", order_id)

    return "", 200


@app.route("/success")
def success():
    return render_template("success.html")


@app.route("/cancel")
def cancel():
    return render_template("cancel.html")


@app.route("/cart")
def cart():
    return render_template("cart.html", pricing=PRICING_CONFIG)


if __name__ == "__main__":
    app.run(port=4242, debug=True)
