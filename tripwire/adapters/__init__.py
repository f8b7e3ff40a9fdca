"""External adapters for the Tripwire error-reporting pipeline.

This package contains all external dependencies (issue tracker APIs,
HTTP servers, process hooks, etc.) and provides implementations of the
core port interfaces.

Adapter Organization:

- tracker/: Issue tracker clients (Linear, GitHub Issues)
- scheduler/: Recurring background tasks (cache sweep)
- web/: aiohttp middleware and the client error intake endpoint
- hooks/: Process-wide uncaught exception hooks
"""
