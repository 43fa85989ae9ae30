#!/usr/bin/env python3
"""Content generator entry point.

Usage:
    python -m content_generator run --directory content --principal admin-1
    python -m content_generator run-json batch.json
    python -m content_generator import-csv export.csv
    python -m content_generator logs --limit 20
    python -m content_generator clear-logs
"""

from __future__ import annotations

import sys

from content_generator.cli import main

if __name__ == "__main__":
    sys.exit(main())
