"""
vault_console.permissions

Client-side mirror of server-computed permission decisions.

Responsibilities:
- Cache decisions per (role, resource, action).
- Coalesce concurrent identical checks into one remote call.
- Offer sync/async/batch/preload/bulk-init evaluation on top of both.
"""

# Package marker.
