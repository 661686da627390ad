"""
CLI entry point for nr-advise command.

This provides a command-line interface for the NR settings advisor.
"""
import sys

from nr_advisor.runner import main

# Re-export main for the console_scripts entry point
__all__ = ['main']

if __name__ == '__main__':
    sys.exit(main())
