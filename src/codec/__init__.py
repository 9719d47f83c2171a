"""Corpus and transport codecs.

This module decodes binary image corpora into labeled feature vectors.
It also owns the base64 transport form used at the store boundary.
"""
