#!/usr/bin/env python3
"""Command-line interface for the BBC Micro DFS disassembler."""

from __future__ import annotations

import sys

from bbcdisasm.cli import main


if __name__ == "__main__":
    sys.exit(main())
