"""Core functionality for guest provisioning."""
