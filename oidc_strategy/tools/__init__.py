"""Collaborators and helpers used by the OIDC strategy."""
