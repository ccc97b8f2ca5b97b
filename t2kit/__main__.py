"""
Entry point for running t2kit as a module.

Usage: python -m t2kit [command] [options]
"""

from t2kit.cli.parser import main

if __name__ == "__main__":
    main()
