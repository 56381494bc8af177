"""
Shared utilities: configuration, logging, exceptions and transactions.
"""
