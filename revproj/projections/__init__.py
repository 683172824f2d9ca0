"""Projection publishing."""
