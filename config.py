import os

from dotenv import load_dotenv

from pricing import PricingConfig

load_dotenv()

DOMAIN = os.getenv("DOMAIN", "http://localhost:4242")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///storefront.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

FLAG_COOKIE_PREFIX = "STOREFRONT_FLAG_"

# query param -> environment variables, first set one wins
FLAGS = {
    "checkout": ("checkoutEnabled", ("CHECKOUT_ENABLED", "NEXT_PUBLIC_CHECKOUT_ENABLED")),
    "auth": ("authEnabled", ("AUTH_ENABLED", "NEXT_PUBLIC_AUTH_ENABLED")),
}


def resolve_config(providers, default=None):
    """Call each provider in order and return the first value that is not None."""
    for provider in providers:
        value = provider()
        if value is not None:
            return value
    return default


def to_boolean(value):
    if value is True or value is False:
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def _first_env(names):
    return resolve_config([lambda name=name: os.getenv(name) for name in names])


def resolve_flags(args=None, cookies=None):
    """Launch flags: URL param, then persisted cookie override, then environment."""
    args = args or {}
    cookies = cookies or {}
    flags = {}
    for param, (key, env_names) in FLAGS.items():
        raw = resolve_config([
            lambda: args.get(param),
            lambda: cookies.get(FLAG_COOKIE_PREFIX + key),
            lambda: _first_env(env_names),
        ])
        flags[key] = to_boolean(raw)
    return flags


def server_checkout_enabled():
    # separate from the client flag; only the exact string "true" turns it on
    return os.getenv("CHECKOUT_ENABLED", "false") == "true"


def stripe_secret_key():
    return os.getenv("STRIPE_SECRET_KEY")


def stripe_webhook_secret():
    return os.getenv("STRIPE_WEBHOOK_SECRET")


def checkout_urls(base_url):
    return (
        os.getenv("CHECKOUT_SUCCESS_URL", f"{base_url}/success?session_id={{CHECKOUT_SESSION_ID}}"),
        os.getenv("CHECKOUT_CANCEL_URL", f"{base_url}/cancel"),
    )


def load_pricing_config():
    return PricingConfig(
        currency=os.getenv("CURRENCY", "AUD"),
        donation_rate=float(os.getenv("DONATION_RATE", "0.10")),
        free_ship_threshold_cents=int(os.getenv("FREE_SHIP_THRESHOLD_CENTS", "20000")),
        default_shipping_cents=int(os.getenv("DEFAULT_SHIPPING_CENTS", "1000")),
    )
