"""
Core processing modules for the transaction batch importer.

This package contains:
- config: Application configuration and settings
- exceptions: Custom exception classes
- logger: Logging configuration
- schema: Pydantic models for rows, outcomes and run reports
- normalize: Field normalization utilities
- parsing: CSV file parsing
- validation: Row precondition checks
- classify: Transaction classification rules
- exporters: Direct debit batch writer
"""
