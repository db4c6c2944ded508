"""Runs one diagnostic: context, connect, handshake, extract, analyze."""
import logging
from dataclasses import dataclass

from . import initialize
from .analyze import build_certificate_info
from .config import CIPHER_LIST
from .connection import open_connection
from .errors import DiagnosticError
from .extract import extract_chain
from .models import CertificateInfo, SessionSummary, version_label
from .session import TLSSession, build_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticResult:
    info: CertificateInfo
    summary: SessionSummary


class DiagnosticFailure(Exception):
    """A stage failed; carries whatever session summary existed."""

    def __init__(self, error: DiagnosticError, summary=None):
        super().__init__(str(error))
        self.error = error
        self.summary = summary


def run_diagnostic(params, cipher_list=CIPHER_LIST):
    """
    Run the whole pipeline for ``params``.

    Every call builds its own context, socket and session; nothing is
    shared between runs. Raises DiagnosticFailure wrapping the first
    stage error.
    """
    initialize()
    summary = None
    try:
        logger.info(f"Setting up client context for {version_label(params.requested_version)}")
        context = build_context(params.requested_version, cipher_list)

        sock = open_connection(params)
        summary = SessionSummary(socket_id=sock.fileno())
        with TLSSession(sock, context, params.requested_version, host=params.host) as session:
            session.handshake()
            summary = session.summary()
            leaf, chain = extract_chain(session)
            info = build_certificate_info(leaf, chain)
    except DiagnosticError as e:
        logger.error(f"{e.stage} stage failed with {e.kind} (code {e.code}): {e.message}")
        raise DiagnosticFailure(e, summary) from e

    return DiagnosticResult(info=info, summary=summary)
