"""
Domain models and request-level policies for the asset gateway.
"""
