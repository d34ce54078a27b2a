"""
vault_console.observability

Structured logging setup and log-context helpers.
"""
