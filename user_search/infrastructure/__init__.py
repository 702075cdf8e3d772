"""
Infrastructure layer - External service clients and concurrency helpers.
"""
