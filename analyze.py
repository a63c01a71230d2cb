#!/usr/bin/env .venv/bin/python3
"""
Command-line script to run workoutanalytics without installing the package.

Usage:
    ./analyze.py best-power 20747700969 --durations 5 60 300 1200
    ./analyze.py compare 20747700969 20765123456 --min-power 250
    ./analyze.py parse data/samples/20747700969_ACTIVITY.fit

Or with explicit python:
    .venv/bin/python3 analyze.py whoami
"""

import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from workoutanalytics.cli import main

if __name__ == "__main__":
    sys.exit(main())
