"""Shared payload builders for the analytics tests."""
