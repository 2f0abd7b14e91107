"""Utility helpers shared across :mod:`simhash_core`."""
