# src/check_cert_chain/main.py

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Tuple

import shtab

from check_cert_chain import __version__
from check_cert_chain.config import BACKENDS, DEFAULT_BACKEND, DEFAULT_PORT, DEFAULT_TIMEOUT, clamp_timeout
from check_cert_chain.errors import InspectionError, InvalidPort
from check_cert_chain.hostname import validate_port
from check_cert_chain.inspector import inspect
from check_cert_chain.report import report_to_dict
from check_cert_chain.utils.logging_utils import setup_logging
from check_cert_chain.web_server import run_server

logger = logging.getLogger(__name__)


def split_host_port(entry: str, default_port: int) -> Tuple[str, int]:
    """
    Split a 'host[:port]' or http(s) URL argument into host and port.

    The host keeps its case and is otherwise untouched; inspect() sanitizes
    it. An explicit port that is not a number in 1..65535 raises InvalidPort.
    """
    processed = entry.strip()
    scheme, separator, rest = processed.partition("://")
    if separator:
        if scheme.lower() not in ("http", "https"):
            # Left whole so the hostname check rejects it
            return processed, default_port
        processed = rest
    processed = processed.split("/", 1)[0]

    host, separator, raw_port = processed.rpartition(":")
    if not separator:
        return processed, default_port
    try:
        port = int(raw_port)
    except ValueError:
        raise InvalidPort(detail=f"Port {raw_port!r} in {entry!r} is not a number")
    return host, validate_port(port)


def check_hosts(entries: List[str], default_port: int, timeout: float, backend: str) -> List[Dict[str, Any]]:
    """Inspect each entry; failures become {'error': ...} results."""
    results = []
    for entry in entries:
        try:
            host, port = split_host_port(entry, default_port)
            logger.debug(f"Checking {host}:{port}")
            report = inspect(host, port, timeout=timeout, backend=backend)
        except InspectionError as e:
            logger.error(f"{entry}: {e.message} ({e.detail})")
            results.append({"domain": entry, "error": e.message})
            continue
        result = report_to_dict(report)
        result["domain"] = entry
        results.append(result)
    return results


def _days_color(days: int) -> str:
    if days < 30:
        return '\033[91m'
    if days < 90:
        return '\033[93m'
    return '\033[92m'


def print_human_summary(results: List[Dict[str, Any]]) -> None:
    """
    Print a colorized summary of each inspected chain.
    """
    separator = "\n" + "=" * 70 + "\n"
    for result in results:
        print(separator)
        print(f"\033[1mCertificate chain for: {result.get('domain', 'N/A')}\033[0m")
        if result.get('error'):
            print(f"Error: \033[91m{result['error']}\033[0m")
            continue

        summary = result['summary']
        print(f"Endpoint   : {summary['hostname']}:{summary['port']}")

        expired = summary.get('expired')
        days_left = summary.get('daysRemaining')
        if expired is None:
            expiry_text = "\033[93mExpiry N/A\033[0m"
        elif expired:
            expiry_text = f"\033[91m❌ Expired ({days_left} days)\033[0m"
        else:
            expiry_text = f"{_days_color(days_left)}✅ {days_left} days remaining\033[0m"
        print(f"Leaf expiry: {expiry_text}")
        self_signed_text = '\033[91mYes\033[0m' if summary.get('selfSigned') else '\033[92mNo\033[0m'
        print(f"Self-signed: {self_signed_text}")

        general = result['general']
        print("\n\033[1mLeaf Certificate:\033[0m")
        print(f"  Common Name: \033[96m{general.get('commonName') or 'N/A'}\033[0m")
        print(f"  Issuer     : {general.get('issuer') or 'N/A'}")
        print(f"  Valid      : {general.get('validFrom') or 'N/A'} -> {general.get('validTo') or 'N/A'} UTC")
        print(f"  Signature  : {general.get('signatureAlgorithm') or 'N/A'}")

        chain = result.get('chain', [])
        print(f"\n\033[1mCertificate Chain Details:\033[0m ({len(chain)} found)")
        for cert in chain:
            index = cert.get('index')
            if index == 0:
                chain_emoji = "🔒"
            elif cert.get('selfSigned'):
                chain_emoji = "🏁"
            else:
                chain_emoji = "🔗"
            print(f"  [{chain_emoji} Chain Index {index}] \033[1mSubject:\033[0m \033[96m{cert.get('subject') or 'N/A'}\033[0m")
            print(f"      \033[1mIssuer:\033[0m \033[94m{cert.get('issuerName') or cert.get('issuer') or 'N/A'}\033[0m")
            print(f"      \033[1mSerial:\033[0m {cert.get('serialNumberHex') or 'N/A'}")
            days = cert.get('daysRemaining')
            days_text = f"{_days_color(days)}{days} days left\033[0m" if days is not None else "\033[93mN/A days left\033[0m"
            print(f"      \033[1mValid:\033[0m {cert.get('validFrom') or 'N/A'} -> {cert.get('validTo') or 'N/A'} | {days_text}")
            print(f"      \033[1mSignature:\033[0m {cert.get('signatureAlgorithm') or 'N/A'}")
            print(f"      \033[1mSHA256 FP:\033[0m {cert.get('sha256Fingerprint') or 'N/A'}")
            sans = cert.get('san') or []
            max_sans_display = 5
            sans_display = ', '.join(sans[:max_sans_display])
            if len(sans) > max_sans_display:
                sans_display += f", ... ({len(sans) - max_sans_display} more)"
            print(f"      \033[1mSANs:\033[0m {sans_display or 'None'}")
            print("")

    print(separator)
    print("\033[90m--- End of inspection ---\033[0m\n")


def write_json(results: List[Dict[str, Any]], target: str) -> None:
    if target == "-":
        json.dump(results, sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
        return
    with open(target, "w", encoding="utf-8") as out:
        json.dump(results, out, indent=2, ensure_ascii=False)
    logger.info(f"JSON report written to {target}")


def create_parser():
    '''
    Create and configure the argument parser for check-cert-chain.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    '''
    parser = argparse.ArgumentParser(
        description="Retrieve and inspect the TLS certificate chain served by one or more hosts.",
        epilog="Example: check-cert-chain example.com expired.badssl.com:443 -j report.json"
    )
    parser.add_argument('--version', '-V', action='version', version=f'%(prog)s {__version__}',
                        help="Show program's version number and exit")
    parser.add_argument('domains', nargs='*',
                        help='Hosts to inspect (e.g., example.com or example.com:8443)')
    parser.add_argument('-P', '--connect-port', type=int, default=DEFAULT_PORT,
                        help=f'Port to connect to (default: {DEFAULT_PORT}). Overridden by host:port')
    parser.add_argument('-t', '--timeout', type=float, default=DEFAULT_TIMEOUT,
                        help=f'Handshake timeout in seconds (default: {DEFAULT_TIMEOUT:g})')
    parser.add_argument('-b', '--backend', choices=BACKENDS, default=DEFAULT_BACKEND,
                        help="Chain retrieval backend: 'pyopenssl' (in-process handshake, default) "
                             "or 'openssl' (external openssl s_client)")
    parser.add_argument('-j', '--json', type=str, metavar='FILE', default=None,
                        help='Output JSON report to FILE (use "-" for stdout)')
    parser.add_argument('-l', '--loglevel', type=str, default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARN', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')
    parser.add_argument('-s', '--server', action='store_true',
                        help='Run as HTTP server exposing the JSON API')
    parser.add_argument('-p', '--port', type=int, default=8000,
                        help='Specify web server port (default: 8000)')
    parser.add_argument('--host', type=str, default='127.0.0.1',
                        help='Address the web server binds to (default: 127.0.0.1)')

    prog_name = parser.prog
    shtab.add_argument_to(parser, ['--print-completion'], preamble={
        "bash": f"""
# Load this into your shell environment by adding
# eval "$({prog_name} --print-completion bash)"
# to your .bashrc or .bash_profile
        """,
        "zsh": f"""
# Load this into your shell environment by adding
# eval "$({prog_name} --print-completion zsh)"
# to your .zshrc
        """,
    })
    return parser


def main(argv=None):
    """
    Parse command-line arguments, then inspect the given hosts or run the web server.
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    args.timeout = clamp_timeout(args.timeout)

    setup_logging(args.loglevel)

    if not args.domains and not args.server:
        parser.print_help()
        return 0

    if args.server:
        if args.domains:
            logger.warning("Domains provided on the command line are ignored when running in server mode.")
        run_server(args)
        return 0

    logger.info(f"Starting inspection for: {args.domains}")
    results = check_hosts(args.domains, args.connect_port, args.timeout, args.backend)
    if args.json:
        write_json(results, args.json)
    else:
        print_human_summary(results)
    return 1 if any('error' in result for result in results) else 0


if __name__ == "__main__":
    sys.exit(main())
