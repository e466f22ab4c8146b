#!/usr/bin/env python3
"""
apimock - mock HTTP server with templated responses

This is a convenience wrapper that calls the modular implementation.
The actual implementation is in src/apimock/cli.py

Usage:
    python apimock-server.py serve --port 8080 --configs mocks.yaml
"""

import sys
from pathlib import Path

# Make the src/ layout importable without installing the package
sys.path.insert(0, str(Path(__file__).parent / "src"))

from apimock.cli import main

if __name__ == '__main__':
    main()
