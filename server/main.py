"""
Main entry point for the Connect6 server.

Usage:
    python -m server.main

Or, once installed:
    connect6-server
"""

from server.network.server import main


if __name__ == "__main__":
    main()
