"""
Command-line interface components.

This package contains CLI tools and entry points for DNS Record Sync.
"""

from .main import main

__all__ = ["main"]
