#!/usr/bin/env python3
"""Convenience runner for the track explorer CLI.

Usage:
    python run.py --input measurements.csv --unit unit-42 --format GPX
"""
import logging
import sys

from track_explorer.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    sys.exit(main())
