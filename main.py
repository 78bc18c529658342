#!/usr/bin/env python3
"""
DNS Record Sync - Main Entry Point

This is the main entry point for DNS Record Sync.
It can be run directly or imported as a module.
"""

from dns_record_sync.cli.main import main

if __name__ == "__main__":
    main()
