"""Test fixtures for mocking GitHub API responses."""
