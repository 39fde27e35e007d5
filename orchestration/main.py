"""
Haven Tracker — Entry Point

Thin wrapper that delegates to bot/client.py.

To run: python orchestration/main.py
   or:  python -m bot.client
"""

import os
import sys

# Running as a script puts orchestration/ on sys.path, not the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bot.client import run  # noqa: E402

if __name__ == "__main__":
    run()
