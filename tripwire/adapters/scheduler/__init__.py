"""Scheduler adapters for recurring background work.

Implementations:
- Cache sweeper (asyncio loop evicting expired dedup entries)
"""
