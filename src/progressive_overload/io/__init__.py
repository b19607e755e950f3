"""Persistence and serialization for training data."""
