"""Shared HTTP plumbing: canonical header names and the error envelope."""
