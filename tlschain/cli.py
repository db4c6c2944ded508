import argparse
import logging
import sys

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter

from . import __version__, config
from .errors import DiagnosticError
from .models import ConnectionParams
from .pipeline import DiagnosticFailure, run_diagnostic
from .report import render_failure, render_report

logger = logging.getLogger("tlschain")

EXIT_OK = 0
EXIT_INTERNAL = 1
EXIT_USAGE = 2


def configure_logging(level=logging.INFO, log_file=None):
    """Log to stderr, and additionally to ``log_file`` when given."""
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    formatter = logging.Formatter(config.LOG_FORMAT)
    logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def parse_target(target, default_port=config.DEFAULT_PORT):
    """Split ``host``, ``host:port`` or ``[v6addr]:port`` into (host, port)."""
    target = target.strip()
    if target.startswith("["):
        host, sep, rest = target[1:].partition("]")
        if not sep:
            raise ValueError("unterminated [ in target")
        if rest and not rest.startswith(":"):
            raise ValueError("expected :port after ]")
        port_s = rest[1:] if rest else ""
    elif target.count(":") == 1:
        host, port_s = target.split(":")
    else:
        # bare host name or unbracketed IPv6 address
        host, port_s = target, ""

    host = host.strip()
    if not host:
        raise ValueError("host is empty")
    if not port_s:
        return host, default_port
    if not port_s.isdigit():
        raise ValueError("port must be a number")
    port = int(port_s)
    if not (1 <= port <= 65535):
        raise ValueError("port out of range")
    return host, port


def parse_args(argv):
    p = argparse.ArgumentParser(
        prog="tlschain",
        description="Show the TLS certificate chain a server presents, without validating it.",
    )
    p.add_argument("target", nargs="?", help="host, host:port or [v6addr]:port")
    p.add_argument("-p", "--port", type=int, help=f"TCP port (default: {config.DEFAULT_PORT})")
    p.add_argument(
        "-V",
        "--ssl-version",
        type=int,
        default=config.DEFAULT_VERSION,
        help="Protocol code: 2 (SSLv23 without SSLv3), 3 (SSLv3), 10 (TLS1.0), "
        f"11 (TLS1.1), 12 (TLS1.2) (default: {config.DEFAULT_VERSION})",
    )
    p.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=config.timeout_ms(),
        help="Receive timeout in milliseconds (default: %(default)s)",
    )
    p.add_argument("--cipher-list", default=config.cipher_list(), help="OpenSSL cipher list (default: %(default)s)")
    p.add_argument("--color", action="store_true", help="Colour the report")
    p.add_argument("--log-file", help="Also write the log to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("-i", "--interactive", action="store_true", help="Run in interactive mode")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def build_params(target, args):
    host, port = parse_target(target)
    if args.port is not None:
        port = args.port
    return ConnectionParams(
        host=host,
        port=port,
        requested_version=args.ssl_version,
        connect_timeout_ms=args.timeout,
    )


def run_once(params, args, out=None):
    """Run one diagnostic and write its report; returns the exit status."""
    out = sys.stderr if out is None else out
    try:
        result = run_diagnostic(params, cipher_list=args.cipher_list)
    except DiagnosticFailure as failure:
        print(render_failure(params, failure.error, failure.summary, color=args.color), file=out)
        return failure.error.code

    try:
        text = render_report(result.info, params, result.summary, color=args.color)
    except DiagnosticError as e:
        logger.error(f"{e.stage} stage failed with {e.kind} (code {e.code}): {e.message}")
        print(render_failure(params, e, result.summary, color=args.color), file=out)
        return e.code
    print(text, file=out)
    logger.info("Diagnostic completed")
    return EXIT_OK


def interactive_mode(args, out=None):
    """Prompt for targets until 'exit'; each run is fully independent."""
    seen = []
    status = EXIT_OK
    while True:
        completer = WordCompleter(seen, ignore_case=True)
        try:
            target = prompt("\nEnter host[:port] (or 'exit' to quit): ", completer=completer).strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not target:
            continue
        if target.lower() == "exit":
            break
        try:
            params = build_params(target, args)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            continue
        if target not in seen:
            seen.append(target)
        try:
            status = run_once(params, args, out)
        except Exception:
            logger.exception("Unexpected failure")
            status = EXIT_INTERNAL
    return status


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    level = logging.DEBUG if args.verbose else config.log_level()
    configure_logging(level, args.log_file)

    if args.interactive:
        return interactive_mode(args)
    if not args.target:
        print("Error: a target is required (or use --interactive)", file=sys.stderr)
        return EXIT_USAGE

    try:
        params = build_params(args.target, args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        return run_once(params, args)
    except Exception:
        logger.exception("Unexpected failure")
        return EXIT_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
