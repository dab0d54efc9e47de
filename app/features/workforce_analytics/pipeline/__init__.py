"""
Pipeline components for workforce analytics.

Window resolution, identity resolution, per-staff aggregation, scoring and
threshold evaluation. Each stage is a pure reduction over typed records.
"""

__all__ = ["aggregation", "evaluation", "identity", "scoring", "windows"]
