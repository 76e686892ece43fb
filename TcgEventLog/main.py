"""
TCG Event Log Decoder Main Entry Point

This script provides a unified entry point to the command-line tools of the
TcgEventLog package. Every command reads a binary TPM event log, by default
the one exposed by the Linux kernel in securityfs.

Usage:
    tcg-eventlog decode [log_file] [--verbose]
    tcg-eventlog yaml [log_file] [--output OUTPUT_FILE] [--verbose]
    tcg-eventlog summary [log_file] [--pcr PCR_INDEX] [--verbose]

Example:
    # Print every record of the running system's event log
    sudo tcg-eventlog decode

    # Export a saved log as YAML
    tcg-eventlog yaml data/boot.tcl --output output/boot.yaml

    # Tabulate the events extending PCR 7
    tcg-eventlog summary data/boot.tcl --pcr 7

Note:
    Decoding stops at the first record that cannot be read (truncated data or
    a digest algorithm the Spec ID event does not announce). Records decoded
    before that point are still printed.
"""

import argparse
import sys

from .cli.decode import DEFAULT_LOG_PATH
from .cli.decode import main as decode_main
from .cli.export_yaml import main as yaml_main
from .cli.summary import main as summary_main


def main(args=None):
    """Parse the command line and run the selected command."""
    parser = argparse.ArgumentParser(
        description='Decode binary TCG/TPM event logs')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    decode_parser = subparsers.add_parser('decode', help='Print every record of an event log')
    decode_parser.add_argument('log_file', nargs='?', default=DEFAULT_LOG_PATH,
                               help='Path to the binary event log')
    decode_parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')

    yaml_parser = subparsers.add_parser('yaml', help='Export an event log as YAML')
    yaml_parser.add_argument('log_file', nargs='?', default=DEFAULT_LOG_PATH,
                             help='Path to the binary event log')
    yaml_parser.add_argument('--output', '-o', help='Write the YAML to this file instead of stdout')
    yaml_parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')

    summary_parser = subparsers.add_parser('summary', help='Tabulate the events of an event log')
    summary_parser.add_argument('log_file', nargs='?', default=DEFAULT_LOG_PATH,
                                help='Path to the binary event log')
    summary_parser.add_argument('--pcr', type=int, help='PCR index to summarize')
    summary_parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')

    if args is None:
        args = sys.argv[1:]

    args = parser.parse_args(args)

    if not args.command:
        parser.print_help()
        return 1

    command_args = [args.log_file]
    if args.verbose:
        command_args.append('--verbose')

    if args.command == 'decode':
        return decode_main(command_args)

    if args.command == 'yaml':
        if args.output:
            command_args.extend(['--output', args.output])
        return yaml_main(command_args)

    if args.command == 'summary':
        if args.pcr is not None:
            command_args.extend(['--pcr', str(args.pcr)])
        return summary_main(command_args)

    return 1


if __name__ == '__main__':
    sys.exit(main())
