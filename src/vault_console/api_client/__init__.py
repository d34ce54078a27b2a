"""
vault_console.api_client

HTTP client boundary for the remote console API.

Responsibilities:
- Transport concerns (base url, timeout, bearer auth, response envelope, 401 hook).
- Typed wrappers for the auth and permission endpoints.
"""

# Package marker.
