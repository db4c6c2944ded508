import logging

__version__ = "1.0.0"

logger = logging.getLogger(__name__)

_initialized = False


def initialize():
    """One-time library setup. Safe to call any number of times."""
    global _initialized
    if _initialized:
        return False
    from OpenSSL import SSL

    version = SSL.OpenSSL_version(SSL.OPENSSL_VERSION).decode("ascii", "replace")
    logger.debug(f"Using {version}")
    _initialized = True
    return True
