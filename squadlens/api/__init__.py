"""HTTP read API for squadlens."""
