"""Test suite for Terramate Selector.

This package contains test modules and fixtures for verifying the functionality
of the stack selection core. It includes tests for:
- Baseline revision resolution
- Repository consistency checks
- Tag and cloud health filtering
- Stack discovery and configuration
- The command line interface

The test suite uses pytest and provides fixtures for common test scenarios.
"""
