"""Test suite for the resource-patterns package.

This package contains unit tests validating pattern compilation, name
matching and rendering, registry construction, schema loading and
compatibility checks between schema versions.
"""
