"""Test suite for the pytest-nest package.

This package contains unit and integration tests validating the
declaration DSL, suite tree evaluation, hook planning and sequencing,
pytest integration, and the command-line utilities.
"""
