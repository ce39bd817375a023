"""Factorlens: portfolio holdings with Fama-French five-factor analysis."""

__version__ = "1.0.0"
