import logging

from OpenSSL import crypto

from .errors import NoChainError, NoLeafCertificateError
from .models import CertificateRecord

logger = logging.getLogger(__name__)


def _to_record(x509):
    return CertificateRecord.from_der(crypto.dump_certificate(crypto.FILETYPE_ASN1, x509))


def extract_chain(session):
    """
    Return ``(leaf, chain)`` as the peer presented them.

    On the client side the presented chain includes the leaf. Order and
    duplicates are kept exactly as sent.
    """
    logger.info("Extracting peer certificate info")

    leaf_x509 = session.peer_certificate()
    if leaf_x509 is None:
        raise NoLeafCertificateError("No peer certificate found in SSL")
    try:
        leaf = _to_record(leaf_x509)
    except ValueError as e:
        raise NoLeafCertificateError(f"Peer certificate is unreadable: {e}") from e

    stack = session.peer_chain()
    if not stack:
        raise NoChainError("No peer certificate stack found in SSL")
    chain = []
    for depth, x509 in enumerate(stack):
        try:
            chain.append(_to_record(x509))
        except ValueError as e:
            raise NoChainError(f"Certificate {depth} of the presented chain is unreadable: {e}") from e

    logger.info(f"Peer presented {len(chain)} certificate(s)")
    return leaf, tuple(chain)
