"""
chains - JSON-RPC access.
"""
