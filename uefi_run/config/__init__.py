"""Configuration for uefi-run."""
