"""
Cache layer for the asset gateway: cache stores, background jobs, cache-aside access.
"""
