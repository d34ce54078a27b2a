"""
vault_console.routing

Static route table and the navigation guard built on it.
"""
