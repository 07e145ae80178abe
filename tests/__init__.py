"""
Tests Package

Unit tests for the game services and integration tests that run the
services and handlers against a temporary SQLite database.

Run tests with: pytest tests/
"""
