"""REST and transformation layer."""
