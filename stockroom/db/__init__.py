"""Storage mapping for Stockroom permissions and roles."""
