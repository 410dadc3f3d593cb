"""Tests for the urbanizer archetypes package."""
