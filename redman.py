#!/usr/bin/env python3
"""
Convenience shim to run Redman from a source checkout.
Usage: python redman.py --pool pool.db {fetch,watch,stats} ...
"""

from redman.cli import main


if __name__ == "__main__":
    main()
