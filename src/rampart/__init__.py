"""RAMPART — tower-defense simulation engine."""

__version__ = "0.1.0"
