"""Shared test fixtures and fake collaborators."""
