"""Django settings for the pickup checkout service.

Static configuration comes from environment variables. Runtime options that
admins change through the API (session settings, pickup locations, pricing)
are stored in the database and loaded by ``apps.shipping.config``.
"""

import json
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-pickup-checkout-dev-key")

DEBUG = _env_bool("DJANGO_DEBUG", "true")

ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

# Signed-in customers send the csrftoken cookie back as X-CSRFToken; list the
# checkout page origin here when it is served from another host
CSRF_TRUSTED_ORIGINS = [o for o in os.getenv("CSRF_TRUSTED_ORIGINS", "").split(",") if o]


INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    # apps
    "apps.shipping",
    "apps.payments",
    "apps.checkout",
]

MIDDLEWARE = [
    "gateway.middleware.RequestIdMiddleware",
    "gateway.middleware.ApiSizeLimitMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.locale.LocaleMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "storefront.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "storefront.wsgi.application"


# Database: sqlite for local development, postgres through DB_ENGINE in compose
DB_ENGINE = os.getenv("DB_ENGINE", "django.db.backends.sqlite3")
if DB_ENGINE.endswith("sqlite3"):
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.getenv("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "HOST": os.getenv("DB_HOST", "checkout-db"),
            "PORT": os.getenv("DB_PORT", "5432"),
            "NAME": os.getenv("DB_NAME", "checkout"),
            "USER": os.getenv("DB_USER", "checkout_user"),
            "PASSWORD": os.getenv("DB_PASSWORD", "checkout-pass"),
            "CONN_MAX_AGE": int(os.getenv("DB_CONN_MAX_AGE", "60")),
        }
    }

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "checkout",
    }
}


LANGUAGE_CODE = "en-us"

LANGUAGES = [
    ("en", "English"),
    ("fr", "French"),
    ("es", "Spanish"),
    ("de", "German"),
]

# Downloaded translation packs land here (see apps.localization)
LOCALE_PACKS_DIR = Path(os.getenv("LOCALE_PACKS_DIR", str(BASE_DIR / "locale_packs")))
LOCALE_PATHS = [BASE_DIR / "locale", LOCALE_PACKS_DIR]

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True


STATIC_URL = "static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.AllowAny",
    ),
    "EXCEPTION_HANDLER": "gateway.exceptions.json_exception_handler",
    "DEFAULT_THROTTLE_RATES": {
        "orders_create": os.getenv("THROTTLE_ORDERS_CREATE", "120/min"),
        "orders_detail": os.getenv("THROTTLE_ORDERS_DETAIL", "600/min"),
        "payment_intents": os.getenv("THROTTLE_PAYMENT_INTENTS", "60/min"),
    },
}


# Request body cap for /api/ (bytes)
API_MAX_BYTES = int(os.getenv("API_MAX_BYTES", str(1 * 1024 * 1024)))

# Outbound HTTP: fixed timeout, no retries
USE_HTTP_ADAPTERS = _env_bool("USE_HTTP_ADAPTERS", "true")
HTTP_TIMEOUT_SECS = float(os.getenv("HTTP_TIMEOUT_SECS", "15"))
HTTP_DOWNLOAD_TIMEOUT_SECS = float(os.getenv("HTTP_DOWNLOAD_TIMEOUT_SECS", "60"))

TRANSLATIONS_INDEX_URL = os.getenv(
    "TRANSLATIONS_INDEX_URL",
    "https://translations.example.com/packs/checkout/index.json",
)


STORE_CURRENCY = os.getenv("STORE_CURRENCY", "EUR")

# Defaults for the runtime shipping options (overridden from the admin API)
SHIPPING_SESSION_ENABLED = _env_bool("SHIPPING_SESSION_ENABLED", "true")
SHIPPING_SESSION_HOURS = int(os.getenv("SHIPPING_SESSION_HOURS", "5"))
SHIPPING_METHOD_TITLE = os.getenv("SHIPPING_METHOD_TITLE", "Pickup Point Delivery")
SHIPPING_SESSION_COOKIE = "checkout_shipping_session"

PAYMENT_GATEWAYS = json.loads(os.getenv("PAYMENT_GATEWAYS", "null")) or [
    {
        "id": "stripe",
        "title": "Credit card",
        "description": "Pay securely with your card.",
        "kind": "card",
        "enabled": True,
        "supports_tokenization": True,
    },
    {
        "id": "cod",
        "title": "Cash on delivery",
        "description": "Pay when you collect your parcel.",
        "kind": "cash",
        "enabled": True,
    },
    {
        "id": "bacs",
        "title": "Bank transfer",
        "description": "Transfer the amount to our bank account.",
        "kind": "other",
        "enabled": True,
    },
]

STRIPE_API_BASE_URL = os.getenv("STRIPE_API_BASE_URL", "https://api.stripe.com")
STRIPE_TEST_MODE = _env_bool("STRIPE_TEST_MODE", "true")
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "")
STRIPE_TEST_SECRET_KEY = os.getenv("STRIPE_TEST_SECRET_KEY", "")
STRIPE_TEST_PUBLISHABLE_KEY = os.getenv("STRIPE_TEST_PUBLISHABLE_KEY", "")


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "gateway.logging_filters.RequestIdFilter"},
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["request_id"],
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.getenv("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "django.request": {"level": "ERROR", "propagate": True},
    },
}
