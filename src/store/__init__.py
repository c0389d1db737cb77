"""Document storage layer.

This module persists company overview documents in a vector-searchable
store and decides create, update, or no-op for each incoming record.
"""
