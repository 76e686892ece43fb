#!/usr/bin/env python3

"""
Test runner for TcgEventLog unit tests.

This script discovers and runs all the test cases in the tests directory.
To run a specific test or test case, pass it as an argument:
    python run_tests.py test_device_path.TestParseDevicePath.test_typical_boot_path
"""

import argparse
import os
import sys
import unittest


def main():
    """Discover and run tests."""
    # The tests import the TcgEventLog package from the repository root
    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
    if root_dir not in sys.path:
        sys.path.append(root_dir)

    parser = argparse.ArgumentParser(description='Run TcgEventLog unit tests')
    parser.add_argument('test_path', nargs='?', default=None,
                        help='Specific test to run (e.g., test_tcg_parser.TestParseEventLog)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose output')
    args = parser.parse_args()

    verbosity = 2 if args.verbose else 1

    start_dir = os.path.dirname(os.path.abspath(__file__))
    if args.test_path:
        print(f"Running specific test: {args.test_path}")
        if start_dir not in sys.path:
            sys.path.insert(0, start_dir)
        suite = unittest.TestLoader().loadTestsFromName(args.test_path, module=None)
    else:
        print("Discovering and running all tests...")
        suite = unittest.TestLoader().discover(start_dir, pattern='test_*.py')

    result = unittest.TextTestRunner(verbosity=verbosity).run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(main())
