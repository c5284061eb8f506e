"""Access-log ingestion pipeline.

This package parses proxy access-log lines into typed records
and bulk-loads accepted records into the request store.
"""
