"""Utility helpers shared across basisfes modules."""
