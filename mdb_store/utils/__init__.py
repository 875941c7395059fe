"""
Utility functions and helpers for MDB Store.

This module provides the identifier mapping used across the MDB Store codebase.
"""

from .mongo import (
    get_field,
    map_input,
    map_input_many,
    map_output,
    map_output_many,
    object_id_to_str,
    to_document,
    to_object_id,
    to_object_ids,
)

__all__ = [
    "get_field",
    "map_input",
    "map_input_many",
    "map_output",
    "map_output_many",
    "object_id_to_str",
    "to_document",
    "to_object_id",
    "to_object_ids",
]
