"""
Fleet Sync Service

Polls the GKE Fleet API, serves Argo CD plugin generator parameters and
keeps Argo CD cluster secrets in sync with fleet memberships. Fleet API
responses pass through a transient-fetch protection layer so that a
momentarily incomplete response never prunes valid cluster secrets.
"""

__version__ = "1.0.0"
