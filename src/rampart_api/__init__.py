"""RAMPART HTTP surface."""
