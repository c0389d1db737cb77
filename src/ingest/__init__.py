"""Company overview ingestion pipeline.

This module reads snapshot sources and quote API results, reconciles
them against the previous snapshot, and feeds the upsert engine.
"""
