"""Nearest-neighbor classification.

This module labels query feature vectors by majority vote among the
closest stored training vectors.
"""
