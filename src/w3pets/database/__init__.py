"""
Database layer: engine, sessions and ORM models.
"""
