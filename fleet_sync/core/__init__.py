"""Core service plumbing (logging)."""
