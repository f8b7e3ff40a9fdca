"""Issue tracker adapters for filing reported errors.

Implementations:
- Linear (GraphQL API)
- GitHub Issues (REST API)
"""
