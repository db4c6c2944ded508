"""Plain-text rendering of a diagnostic run. Pure functions, no I/O."""

from tabulate import tabulate

from .config import COLOR_BOLD, COLOR_GREEN, COLOR_RED, COLOR_RESET, COLOR_YELLOW
from .errors import RenderError
from .models import version_label

LABEL_WIDTH = 18
NONE_TEXT = "(none)"


def _line(label, value):
    return f": {label:<{LABEL_WIDTH}}: {value}"


def _flag(value, color=False, good=True):
    text = "Yes" if value else "No"
    if not color:
        return text
    shade = COLOR_GREEN if bool(value) == good else COLOR_YELLOW
    return f"{shade}{text}{COLOR_RESET}"


def _heading(text, color):
    return f"{COLOR_BOLD}{text}{COLOR_RESET}" if color else text


def _table(rows, headers):
    # Values are shown as the peer sent them; "007" must not become 7
    return tabulate(rows, headers=headers, tablefmt="simple", disable_numparse=True)


def _connection_lines(params, summary):
    lines = [
        _line("Host/IP", params.host),
        _line("Port", params.port),
    ]
    if summary is not None:
        lines.append(_line("Socket no", summary.socket_id))
    lines.append(_line("SSL/TLS version", version_label(params.requested_version)))
    if summary is not None and summary.protocol:
        lines.append(_line("Negotiated", summary.protocol))
    if summary is not None and summary.cipher:
        lines.append(_line("Cipher", summary.cipher))
    return lines


def render_report(info, params, summary=None, color=False):
    """Render a full report for a successful run."""
    try:
        lines = [_heading(f"TLS certificate chain for {params.host}:{params.port}", color)]
        lines += _connection_lines(params, summary)
        lines += [
            _line("Chain depth", info.depth),
            _line("Root CA in stack?", _flag(info.chain_has_self_signed_anchor, color)),
            _line("Leaf is CA?", _flag(info.is_ca, color, good=False)),
            "",
        ]

        rows = []
        for depth, record in enumerate(info.chain):
            rows.append([depth, "s", record.subject_text])
            rows.append(["", "i", record.issuer_text])
        lines.append(_table(rows, ["Depth", "", "Distinguished name"]))
        lines.append("")

        if info.sans:
            san_rows = [[entry.kind.value, entry.value] for entry in info.sans]
            lines.append(_table(san_rows, ["Subject Alt Name", "Value"]))
        else:
            lines.append(_line("Subject Alt Name", NONE_TEXT))
        if info.extensions:
            lines.append("")
            lines.append(_table([list(row) for row in info.extensions], ["Leaf extension", "Value"]))
        lines.append(_line("Common name", NONE_TEXT if info.common_name is None else info.common_name))
    except (AttributeError, TypeError, ValueError) as e:
        raise RenderError(f"Cannot render report: {e}") from e
    return "\n".join(lines)


def render_failure(params, error, summary=None, color=False):
    """Render what is known about a run that stopped at ``error``."""
    status = f"{error.kind} (code {error.code})"
    if color:
        status = f"{COLOR_RED}{status}{COLOR_RESET}"
    lines = [_heading(f"TLS certificate chain for {params.host}:{params.port}", color)]
    lines += _connection_lines(params, summary)
    lines += [
        _line("Failed stage", error.stage),
        _line("Error", status),
        _line("Detail", error.message),
    ]
    return "\n".join(lines)
