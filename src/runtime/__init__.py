"""Runtime scheduling layer.

This module serializes ingest and poll work onto one worker thread.
It owns rate limiting, interval triggers, and the long-running service.
"""
