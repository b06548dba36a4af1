"""Test helpers for Hierarch."""
