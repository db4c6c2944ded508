import logging
import os

# -----------------------------------
# Connection defaults
# -----------------------------------
DEFAULT_PORT = 443
DEFAULT_VERSION = 12
DEFAULT_TIMEOUT_MS = 30 * 1000
VERIFY_DEPTH = 20

# Broadest cipher set; SECLEVEL=0 lets OpenSSL 3 negotiate TLS 1.0/1.1 with
# servers still stuck on them.
CIPHER_LIST = "ALL:@SECLEVEL=0"

# -----------------------------------
# Output
# -----------------------------------
COLOR_GREEN = "\033[92m"
COLOR_RED = "\033[91m"
COLOR_YELLOW = "\033[93m"
COLOR_BLUE = "\033[94m"
COLOR_BOLD = "\033[1m"
COLOR_RESET = "\033[0m"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# -----------------------------------
# Environment overrides
# -----------------------------------
ENV_LOG_LEVEL = "TLSCHAIN_LOG"
ENV_TIMEOUT_MS = "TLSCHAIN_TIMEOUT_MS"
ENV_CIPHER_LIST = "TLSCHAIN_CIPHER_LIST"

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def log_level(environ=None):
    """Log level from TLSCHAIN_LOG, INFO when unset or not a level name."""
    environ = os.environ if environ is None else environ
    name = environ.get(ENV_LOG_LEVEL, "").strip().upper()
    if name in _LEVELS:
        return getattr(logging, name)
    return logging.INFO


def timeout_ms(environ=None):
    environ = os.environ if environ is None else environ
    raw = environ.get(ENV_TIMEOUT_MS, "").strip()
    if raw.isdigit() and 0 < int(raw) <= 0xFFFFFFFF:
        return int(raw)
    return DEFAULT_TIMEOUT_MS


def cipher_list(environ=None):
    environ = os.environ if environ is None else environ
    return environ.get(ENV_CIPHER_LIST, "").strip() or CIPHER_LIST
