"""
dex - Pool identity, path codec, in-memory pools and protocol adapters.
"""
