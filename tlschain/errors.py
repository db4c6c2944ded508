"""Error taxonomy for the diagnostic pipeline.

Every stage raises exactly one kind of error. The ``code`` of each class is
the process exit status reported by the CLI and must stay stable.
"""


class DiagnosticError(Exception):
    """Base class for all pipeline failures."""

    code = 1
    stage = "internal"

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def kind(self):
        return type(self).__name__


# Connection establishment

class ResolutionError(DiagnosticError):
    """Host name lookup failed or returned no usable address."""

    code = 10
    stage = "connect"


class SocketCreateError(DiagnosticError):
    code = 11
    stage = "connect"


class TimeoutSettingError(DiagnosticError):
    code = 12
    stage = "connect"


class ConnectError(DiagnosticError):
    """TCP connect failed (refused, unreachable or timed out)."""

    code = 13
    stage = "connect"


# TLS context and handshake

class UnsupportedVersionError(DiagnosticError):
    code = 20
    stage = "context"


class CipherPolicyError(DiagnosticError):
    code = 21
    stage = "context"


class HandshakeError(DiagnosticError):
    code = 22
    stage = "handshake"


# Chain extraction

class NoLeafCertificateError(DiagnosticError):
    code = 30
    stage = "extract"


class NoChainError(DiagnosticError):
    code = 31
    stage = "extract"


# Analysis and rendering

class ExtensionDecodeError(DiagnosticError):
    """An extension was present but its payload did not decode."""

    code = 40
    stage = "analyze"


class RenderError(DiagnosticError):
    code = 50
    stage = "render"


ALL_ERRORS = (
    ResolutionError,
    SocketCreateError,
    TimeoutSettingError,
    ConnectError,
    UnsupportedVersionError,
    CipherPolicyError,
    HandshakeError,
    NoLeafCertificateError,
    NoChainError,
    ExtensionDecodeError,
    RenderError,
)
