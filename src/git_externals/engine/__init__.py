"""Probe, reconciler and repository operations for externals."""
