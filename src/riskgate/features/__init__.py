"""Offline per-user feature recomputation."""

from riskgate.features.recompute import FeatureRecomputer, RecomputeSummary

__all__ = ["FeatureRecomputer", "RecomputeSummary"]
