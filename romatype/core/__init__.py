"""Segmentation, matching, reporting and statistics."""
