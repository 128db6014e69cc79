"""Shared utilities for PHI Guard."""
