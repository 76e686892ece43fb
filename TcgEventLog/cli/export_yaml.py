#!/usr/bin/env python3
"""
TCG Event Log YAML Exporter

This script decodes a binary TPM event log and writes it as a YAML document:
the Spec ID event, followed by every event with its digests and decoded data.

Usage:
    python -m TcgEventLog.cli.export_yaml [log_file] [--output OUTPUT_FILE] [--verbose]

Example:
    python -m TcgEventLog.cli.export_yaml data/boot.tcl --output output/boot.yaml
"""

import argparse
import os
import sys
from typing import Any, Dict

import yaml

from ..core.models import TcgLog
from ..parsers.tcg_parser import TCGLogParser
from .decode import DEFAULT_LOG_PATH, load_event_log, setup_logging


def event_log_to_dict(tcg_log: TcgLog) -> Dict[str, Any]:
    """
    Convert a decoded log to plain data ready for serialisation.

    Args:
        tcg_log: The decoded log

    Returns:
        Dictionary with the source, the digest algorithms and all records
    """
    return {
        'source_file': tcg_log.source_file,
        'algorithms': [{'algorithm': entry.algorithm_name, 'digest_size': entry.digest_size}
                       for entry in tcg_log.registry],
        'events': [dict(event_num=num, **TCGLogParser.convert_event_to_dict(record))
                   for num, record in enumerate(tcg_log.records)],
        'trailing_bytes': tcg_log.trailing_bytes,
    }


def dump_event_log(tcg_log: TcgLog) -> str:
    """Return the YAML text for a decoded log."""
    return yaml.safe_dump(event_log_to_dict(tcg_log), sort_keys=False, default_flow_style=False)


def main(args=None):
    """Main function to export a TCG event log as YAML"""
    parser = argparse.ArgumentParser(
        description='Decode a binary TPM event log and export it as YAML')
    parser.add_argument('log_file', nargs='?', default=DEFAULT_LOG_PATH,
                        help=f'Path to the binary event log (default: {DEFAULT_LOG_PATH})')
    parser.add_argument('--output', '-o', help='Write the YAML to this file instead of stdout')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    parsed_args = parser.parse_args(args)
    setup_logging(parsed_args.verbose)

    tcg_log = load_event_log(parsed_args.log_file, parsed_args.verbose)
    if tcg_log is None:
        return 1

    document = dump_event_log(tcg_log)

    if not parsed_args.output:
        print(document, end='')
        return 0

    output_dir = os.path.dirname(parsed_args.output)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    with open(parsed_args.output, 'w') as f:
        f.write(document)
    print(f"Event log saved to {parsed_args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
