"""
Command Line Interface Package

Unified CLI for bill extraction and expense forecasting.

Command Structure:
- billtrack: Main entry point with utility commands (version, config)
- billtrack bills: Browse bill messages page by page and export them to CSV
- billtrack forecast: Sync transactions and forecast per-category spending
"""
