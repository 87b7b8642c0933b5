"""
Asset gateway application package.
"""
