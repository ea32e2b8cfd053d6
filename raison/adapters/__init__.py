"""Transport adapters for Raison."""
