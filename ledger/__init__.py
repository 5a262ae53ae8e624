"""
Ledger access for transfers created by the importer.

This package contains:
- base: Account, transfer and ledger service interfaces
- sqlite_ledger: SQLite backed implementation
"""
