"""
Tests for notifications app.

This package contains test modules for:
- test_models.py: AdminNotification model tests
- test_tasks.py: Email task tests
- test_views.py: Carousel confirmation endpoint tests
"""
