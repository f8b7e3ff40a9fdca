"""Test suite for Tripwire error reporting.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Tests for adapter implementations
   - Trackers run against mocked HTTP transports
   - Web adapters run against an in-process aiohttp server

3. fakes/: Port implementations for testing
   - In-memory IssueTrackerPort and ErrorReporterPort
"""
