#!/usr/bin/env python3
"""
bucketgit CLI entry point.
Allows running with `python -m bucketgit`
"""

from .cli.main import main

if __name__ == "__main__":
    main()
