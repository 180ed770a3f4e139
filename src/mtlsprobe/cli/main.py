# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""mtlsprobe CLI."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ..errors import InvalidRequestError, error_category_to_reason
from ..log import setup_logging
from ..models import ConnectionRequest
from ..runtime import MtlsProbe


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Test a mutual-TLS connection with a client identity and trust anchor")
    parser.add_argument("url", nargs="?", help="Target URL to probe")
    parser.add_argument("--request", metavar="FILE", help="Read a JSON connection request instead of flags ('-' for stdin)")
    parser.add_argument("--proxy", dest="proxy_url", help="Proxy URL applied to all protocols")
    parser.add_argument("--keystore", dest="keystore_path", help="Client identity container (PKCS#12 or PEM)")
    parser.add_argument("--password", dest="keystore_password", default="", help="Identity container passphrase")
    parser.add_argument("--certificate", dest="public_certificate_path", help="PEM trust-anchor certificate")
    parser.add_argument(
        "--no-check-hostname",
        dest="check_hostname",
        action="store_false",
        help="Accept a server certificate issued for another name (lab use only)",
    )
    parser.add_argument(
        "--inbuilt-root-certs",
        dest="use_inbuilt_root_certs",
        action="store_true",
        help="Trust the bundled root certificates in addition to --certificate",
    )
    parser.add_argument(
        "--allow-http",
        dest="use_https_only",
        action="store_false",
        help="Permit plain-HTTP requests and redirects",
    )
    parser.add_argument("--no-sni", dest="use_tls_sni", action="store_false", help="Do not send Server Name Indication")
    parser.add_argument("--json", action="store_true", help="Output the JSON response instead of a summary")
    parser.add_argument("--log-level", help="Python logging level (default from MTLSPROBE_LOG_LEVEL)")
    return parser


def _payload_from_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> dict[str, Any]:
    if args.request:
        try:
            if args.request == "-":
                return json.load(sys.stdin)
            with open(args.request, encoding="utf-8") as handle:
                return json.load(handle)
        except OSError as exc:
            parser.error(f"cannot read request file {args.request!r}: {exc.strerror or exc}")
        except ValueError as exc:
            parser.error(f"request file {args.request!r} is not valid JSON: {exc}")

    missing = [
        flag
        for flag, value in (
            ("url", args.url),
            ("--keystore", args.keystore_path),
            ("--certificate", args.public_certificate_path),
        )
        if not value
    ]
    if missing:
        parser.error(f"missing required argument(s): {', '.join(missing)}")

    request = ConnectionRequest(
        url=args.url,
        proxy_url=args.proxy_url,
        keystore_path=args.keystore_path,
        keystore_password=args.keystore_password,
        public_certificate_path=args.public_certificate_path,
        check_hostname=args.check_hostname,
        use_inbuilt_root_certs=args.use_inbuilt_root_certs,
        use_https_only=args.use_https_only,
        use_tls_sni=args.use_tls_sni,
    )
    return request.to_dict()


def _pretty_print(response: dict[str, Any], reason: str = "") -> None:
    if response.get("success"):
        print("[mtlsprobe] Status: Success")
    else:
        print("[mtlsprobe] Status: Failed")
        print(f"Error: {response.get('error')}")
        if reason:
            print(f"Reason: {reason}")
    logdata = response.get("logdata")
    if logdata:
        print("Log:")
        print(logdata.rstrip("\n"))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    payload = _payload_from_args(parser, args)

    with MtlsProbe() as probe:
        try:
            request = ConnectionRequest.from_mapping(payload)
        except InvalidRequestError as exc:
            response: dict[str, Any] = {"error": exc.message, "logdata": None}
            reason = ""
        else:
            outcome = probe.run(request)
            response = outcome.to_dict()
            reason = error_category_to_reason(outcome.category)

    if args.json:
        json.dump(response, sys.stdout, indent=2, sort_keys=True)
        sys.stdout.write("\n")
    else:
        _pretty_print(response, reason)

    return 0 if response.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main())
