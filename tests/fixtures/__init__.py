"""Shared pytest fixtures for the content router test suite."""
