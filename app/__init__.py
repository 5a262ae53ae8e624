"""
HTTP API for validating uploads and triggering import runs.
"""
