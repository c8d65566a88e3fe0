"""
Run a document database console sample.

Usage:
    python scripts/run_sample.py queries
    python scripts/run_sample.py ttl --no-pause
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from docdb.samples.cli import main


if __name__ == "__main__":
    sys.exit(main())
