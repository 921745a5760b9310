"""CLI entrypoint for the Synthient client."""

import argparse
import json
import shutil
import sys

from .client import SynthientClient
from .config import SynthientConfig
from .errors import SynthientError
from .log_utils import log, redact, set_log_file
from .models import AnonymizersQuery
from .transport import RequestOptions


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synthient",
        description="Query the Synthient IP lookup API and anonymizer feeds.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Deadline in seconds for connecting and for each read (default: none).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    parser.add_argument(
        "--log-file",
        help="Append log lines to this file instead of stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    ip_parser = commands.add_parser("ip", help="Look up enrichment data for an IP address.")
    ip_parser.add_argument("address", help="IPv4 or IPv6 address.")

    feed_parser = commands.add_parser("feed", help="Stream or download the anonymizers feed.")
    feed_commands = feed_parser.add_subparsers(dest="feed_command", required=True)
    stream_parser = feed_commands.add_parser("stream", help="Write the feed to stdout.")
    _add_query_arguments(stream_parser)
    download_parser = feed_commands.add_parser("download", help="Write the feed to a new file.")
    download_parser.add_argument("path", help="Destination file; must not exist yet.")
    _add_query_arguments(download_parser)
    return parser


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--provider", help="Feed provider, e.g. BIRDPROXIES.")
    parser.add_argument("--type", help="Anonymizer type, e.g. RESIDENTIAL_PROXY.")
    parser.add_argument("--last-observed", help="Recency window, e.g. 7D.")
    parser.add_argument("--country-code", help="ISO 3166-1 alpha-2 country code.")
    parser.add_argument("--format", default="CSV", help="Output format (default: CSV).")
    parser.add_argument("--order", default="desc", help="Sort order (default: desc).")
    parser.add_argument(
        "--full",
        action="store_true",
        help="Request the full dataset.",
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    set_log_file(args.log_file)

    config = SynthientConfig.from_env()
    client = SynthientClient.from_config(config)
    client.debug = client.debug or args.verbose
    options = RequestOptions(timeout=args.timeout)
    log(client.debug, "synthient client ready", token=redact(client.token))

    try:
        with client:
            if args.command == "ip":
                record = client.lookup_ip(args.address, options)
                sys.stdout.write(json.dumps(record.to_dict(), indent=2) + "\n")
            elif args.feed_command == "stream":
                with client.stream_anonymizers_feed(_query_from_args(args), options) as stream:
                    shutil.copyfileobj(stream, sys.stdout.buffer)
                sys.stdout.flush()
            else:
                written = client.download_anonymizers_feed(
                    _query_from_args(args), args.path, options
                )
                sys.stdout.write(f"{written} bytes downloaded\n")
    except SynthientError as exc:
        log(client.debug, "synthient request failed", error=type(exc).__name__)
        sys.stderr.write(f"error: {exc}\n")
        return 1
    return 0


def _query_from_args(args: argparse.Namespace) -> AnonymizersQuery:
    return AnonymizersQuery(
        provider=args.provider,
        type=args.type,
        last_observed=args.last_observed,
        country_code=args.country_code,
        format=args.format,
        full=args.full,
        order=args.order,
    )


if __name__ == "__main__":
    raise SystemExit(main())
