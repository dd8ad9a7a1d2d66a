"""Shared helpers used across vendorsync layers."""
