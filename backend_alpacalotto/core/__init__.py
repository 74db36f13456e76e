"""
Core shared pieces: error taxonomy, TTL cache, address helpers.
"""
