"""Extraction pipeline: validate, classify, resolve, normalize, build."""
