"""Cluster collaborators: protocols, the Kubernetes adapter, git remote lookup."""
