"""Core services for Stockroom."""
