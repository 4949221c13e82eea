"""Expectation building, invariant checks and reporting."""
