#!/usr/bin/env python3
"""
Main entry point for the relaychat console client
"""

from relaychat.main import run

if __name__ == "__main__":
    run()
