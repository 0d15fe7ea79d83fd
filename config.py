import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./datahub.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = bool(data.get("API_RELOAD", False))
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Wallet
    CURRENCY = data.get("CURRENCY", "GHS")
    DEPOSIT_MIN_AMOUNT = str(data.get("DEPOSIT_MIN_AMOUNT", "1.00"))
    DEPOSIT_MAX_AMOUNT = str(data.get("DEPOSIT_MAX_AMOUNT", "10000.00"))

    # Payment gateway (Paystack)
    PAYSTACK_SECRET_KEY = data.get("PAYSTACK_SECRET_KEY", "")
    PAYSTACK_BASE_URL = data.get("PAYSTACK_BASE_URL", "https://api.paystack.co")
    PAYSTACK_CALLBACK_URL = data.get("PAYSTACK_CALLBACK_URL", None)
    PAYSTACK_TIMEOUT_SECONDS = data.get("PAYSTACK_TIMEOUT_SECONDS", 30)

    # Fulfillment provider (Hubnet)
    HUBNET_API_TOKEN = data.get("HUBNET_API_TOKEN", "")
    HUBNET_BASE_URL = data.get(
        "HUBNET_BASE_URL", "https://console.hubnet.app/live/api/context/business/transaction"
    )
    HUBNET_WEBHOOK_URL = data.get("HUBNET_WEBHOOK_URL", None)
    HUBNET_WEBHOOK_SECRET = data.get("HUBNET_WEBHOOK_SECRET", "")
    HUBNET_TIMEOUT_SECONDS = data.get("HUBNET_TIMEOUT_SECONDS", 30)

    # Operator endpoints (/admin); empty disables them
    ADMIN_API_TOKEN = data.get("ADMIN_API_TOKEN", "")

    # Settlement events
    SETTLEMENT_EVENTS_WEBHOOK = data.get("SETTLEMENT_EVENTS_WEBHOOK", None)

    # Pending deposit verification
    DEPOSIT_VERIFIER_ENABLED = bool(data.get("DEPOSIT_VERIFIER_ENABLED", True))
    DEPOSIT_VERIFIER_INTERVAL_SECONDS = data.get("DEPOSIT_VERIFIER_INTERVAL_SECONDS", 300)
    DEPOSIT_VERIFIER_MIN_AGE_SECONDS = data.get("DEPOSIT_VERIFIER_MIN_AGE_SECONDS", 600)
