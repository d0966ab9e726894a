"""Working memory model and algorithms."""
