"""HATS deployment verifier: checks a live HATS deployment against its intended topology."""

__version__ = "0.1.0"
