"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User role helpers and subscription access rule
- test_managers.py: UserManager creation paths

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_models.py
"""
