"""
Entry point for running devstrap as a module.

Usage: python -m devstrap [command] [options]
"""

from devstrap.cli.parser import main

if __name__ == "__main__":
    main()
