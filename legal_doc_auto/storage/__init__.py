"""
Persistence: SQLite records and blob storage for generated artifacts.
"""
