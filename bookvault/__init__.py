"""
bookvault - Versioned address book and expense book with local and online backups.
"""

__version__ = "0.1.0"
