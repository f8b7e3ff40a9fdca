"""Web adapters for the host application.

- middleware: aiohttp middleware and error responses for server-side errors
- intake: HTTP endpoint receiving browser-side error reports
"""
