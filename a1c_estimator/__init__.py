"""A1C Estimator API."""

__version__ = "0.1.0"
