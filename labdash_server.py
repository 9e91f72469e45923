"""Entry script for the LabDash host telemetry agent.

Usage:
    python labdash_server.py server [--config PATH] [--skip-frontend]
    python labdash_server.py info [--config PATH]
    python labdash_server.py version
"""

import sys

from labdash.cli import main

if __name__ == "__main__":
    sys.exit(main())
