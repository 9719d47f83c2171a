"""Request-facing service adapters.

This module connects the feature store and classifier to an outer
request router, and maps domain errors to response statuses.
"""
