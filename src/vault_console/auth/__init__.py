"""
vault_console.auth

Identity package.

Responsibilities:
- Identity models and role flags.
- Session store with login/logout lifecycle events.
- Unverified token claim inspection.
"""

# Package marker.
