"""Core domain package for lorekeeper.

Core contains classification, caching, enrichment, and dispatch logic
without any Telegram or SQLite-specific code, keeping the business logic
portable.
"""
