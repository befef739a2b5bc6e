#!/usr/bin/env python3
"""
Convenience shim to run Reelmerge from a source checkout.
Usage: python reelmerge.py [QUERY] [--flat|--aggregate] [--config PATH]
"""

from reelmerge.cli import main


if __name__ == "__main__":
    main()
