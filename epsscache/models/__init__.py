"""Domain model package exports."""

from .scores import (Metadata, Score, is_cve_id, is_probability,
                     validate_cve_id)

__all__ = [
    "Metadata",
    "Score",
    "is_cve_id",
    "is_probability",
    "validate_cve_id",
]
