"""
Service layer - Session-level orchestration of the repositories.
"""
