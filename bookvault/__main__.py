"""
Entry point for running bookvault as a module.

Usage:
    python -m bookvault --help
    python -m bookvault backup
    python -m bookvault restore github <token>
"""

from bookvault.cli import cli

if __name__ == "__main__":
    cli()
