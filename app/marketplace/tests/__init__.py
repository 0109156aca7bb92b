"""
Tests for marketplace app.

This package contains test modules for:
- test_models.py: Product helpers and Reservation transitions
- test_services.py: Reservation inventory, sale finalization, reviews
- test_views.py: API endpoint tests
"""
