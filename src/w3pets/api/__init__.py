"""
HTTP API for the W3Pets marketplace.
"""
