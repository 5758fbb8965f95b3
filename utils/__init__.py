"""Bucket Console library code."""
