"""Content-addressed feature storage.

This module persists feature vectors under content-derived identifiers.
It partitions records into training and test sets by label presence.
"""
