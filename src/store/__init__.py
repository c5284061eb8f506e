"""Storage layer.

This package persists imported requests in DuckDB and serves
parametrized aggregation queries over them.
"""
