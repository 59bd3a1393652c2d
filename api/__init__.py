"""HTTP API for the Argo CD plugin generator."""
