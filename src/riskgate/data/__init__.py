"""Data layer - canonical schemas."""
