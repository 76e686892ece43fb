#!/usr/bin/env python3
"""
TCG Event Log Summary Generator

This script provides a command-line interface to print a tabulated summary
of a binary TPM event log, optionally restricted to a single PCR.

Usage:
    python -m TcgEventLog.cli.summary [log_file] [--pcr PCR_INDEX]

Example:
    python -m TcgEventLog.cli.summary data/boot.tcl --pcr 7
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from ..core.constants import HashAlgorithm
from ..core.models import TcgLog
from .decode import DEFAULT_LOG_PATH, format_event_type, load_event_log, setup_logging


def get_display_digest(event) -> str:
    """
    Pick the digest shown for an event: SHA-256 if present, else the first one.

    Args:
        event: A crypto-agile record

    Returns:
        The digest as '<algorithm>:<hex>', or 'N/A' for records without digests
    """
    sha256_digest = event.get_digest(HashAlgorithm.SHA256)
    if sha256_digest is not None:
        return f"sha256:{sha256_digest.hex()}"
    if event.digests:
        first = event.digests[0]
        return f"{first.algorithm_name}:{first.value.hex()}"
    return "N/A"


def generate_summary(tcg_log: TcgLog, pcr_index: Optional[int] = None) -> Dict[str, Any]:
    """
    Print a summary table of the events of a log.

    Args:
        tcg_log: The decoded log
        pcr_index: Only include events extending this PCR (all PCRs if None)

    Returns:
        The summary data: table rows and event type counts
    """
    events = tcg_log.events if pcr_index is None else tcg_log.get_events_by_pcr(pcr_index)

    table_data: List[List[Any]] = []
    event_type_count: Dict[str, int] = {}

    for position, event in enumerate(events, start=1):
        event_type = format_event_type(event)
        event_type_count[event_type] = event_type_count.get(event_type, 0) + 1
        table_data.append([position, event.pcr_index, event_type, event.event_size, get_display_digest(event)])

    scope = "all PCRs" if pcr_index is None else f"PCR {pcr_index}"
    print(f"\nEvent Log Summary ({scope}):")
    print(f"Source: {tcg_log.source_file or 'N/A'}")

    headers = ["Pos", "PCR", "Event Type", "Size", "Digest"]
    print(tabulate(table_data, headers=headers, tablefmt="grid"))

    print(f"\nTotal events: {len(events)}")
    print("\nEvent type distribution:")
    print(tabulate(sorted(event_type_count.items()), headers=["Event Type", "Count"], tablefmt="simple"))

    return {
        'pcr_index': pcr_index,
        'rows': table_data,
        'event_types': event_type_count,
    }


def main(args=None):
    """
    Main entry point for the summary tool.
    """
    parser = argparse.ArgumentParser(description='TCG Event Log Summary Generator')
    parser.add_argument('log_file', nargs='?', default=DEFAULT_LOG_PATH,
                        help=f'Path to the binary event log (default: {DEFAULT_LOG_PATH})')
    parser.add_argument('--pcr', type=int, help='PCR index to summarize (all PCRs by default)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    parsed_args = parser.parse_args(args)
    setup_logging(parsed_args.verbose)

    tcg_log = load_event_log(parsed_args.log_file, parsed_args.verbose)
    if tcg_log is None:
        return 1

    generate_summary(tcg_log, parsed_args.pcr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
