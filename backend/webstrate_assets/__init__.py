"""Versioned, deduplicated asset storage for collaborative documents."""
