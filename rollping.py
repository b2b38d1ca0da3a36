"""
Rollping command line entry point.

Reads hosts from stdin, pings them all concurrently and prints one
JSON line of aggregate latency statistics to stdout. Diagnostics go
to stderr.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, TextIO

from config import config
from exceptions import InputError
from geoip import locate
from pinger import Pinger
from report import assemble_report
from stats import calculate_statistics
from utils import read_hosts, setup_logging, verbosity_to_level

logger = logging.getLogger("rollping")


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rollping",
        description="Ping multiple hosts and aggregate statistics",
    )
    parser.add_argument(
        "-c", "--count", type=_non_negative_int, default=config.count,
        help="Number of pings to send to each host (default: %(default)s)",
    )
    parser.add_argument(
        "-t", "--timeout-secs", type=_positive_float, default=config.timeout_secs,
        help="Timeout in seconds for each ping (default: %(default)s)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase logging verbosity (-v WARNING, -vv INFO, -vvv DEBUG)",
    )
    parser.add_argument(
        "-g", "--geo", action="store_true",
        help="Include the geolocation of this machine in the report",
    )
    parser.add_argument(
        "--privileged", action="store_true", default=config.privileged,
        help="Use raw ICMP sockets (requires root or CAP_NET_RAW)",
    )
    parser.add_argument(
        "--concurrency", type=_non_negative_int, default=config.concurrency,
        help="Maximum hosts probed at once, 0 for unbounded (default: %(default)s)",
    )
    return parser


async def run(
    args: argparse.Namespace,
    stdin: TextIO = None,
    stdout: TextIO = None,
    pinger: Optional[Pinger] = None,
) -> int:
    """
    Execute one batch run.

    Returns:
        Process exit status.
    """
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout

    logger.info(
        "Starting rollping with %d pings per host, %ss timeout",
        args.count,
        args.timeout_secs,
    )

    try:
        hosts = read_hosts(stdin)
    except InputError as e:
        logger.error("%s", e)
        return 1
    logger.info("Read %d hosts from stdin", len(hosts))

    location = await locate(config) if args.geo else None

    if hosts:
        pinger = pinger or Pinger(
            count=args.count,
            timeout=args.timeout_secs,
            privileged=args.privileged,
            concurrency=args.concurrency,
        )
        results = await pinger.ping_hosts(hosts)
    else:
        logger.warning("No hosts provided on stdin")
        results = []

    stats = calculate_statistics(results, args.count, args.timeout_secs)
    logger.info(
        "Completed pinging %d hosts, %d non-responsive",
        stats.total_hosts,
        stats.non_responsive_nodes,
    )

    report = assemble_report(stats, location)
    stdout.write(report.to_json() + "\n")
    stdout.flush()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(verbosity_to_level(args.verbose, config.log_level))
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
