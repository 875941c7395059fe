"""
MongoDB document utility functions for MDB Store.

This module holds the identifier mapping applied by every Store operation.
The functions are pure: they never touch a client and never mutate the
caller's document, so they can be tested without a database.

Writes (``map_input``):
    {"id": "507f1f77bcf86cd799439011", "ts": 1700000000, "name": "John"}
    -> {"_id": ObjectId("507f1f77bcf86cd799439011"), "name": "John"}

Reads (``map_output``):
    {"_id": ObjectId("507f1f77bcf86cd799439011"), "name": "John"}
    -> {"id": "507f1f77bcf86cd799439011", "name": "John", "ts": 1350508407}

(with ``auto_id=True, auto_id_map_id="id", auto_id_map_timestamp="ts"``)
"""

from collections.abc import Iterable, Mapping
from types import SimpleNamespace
from typing import Any

from bson import ObjectId

from ..config import StoreOptions
from ..constants import DEFAULT_TIMESTAMP_FIELD, ID_FIELD, OBJECT_ID_HEX_LENGTH

_SCALARS = (str, bytes, int, float, bool)


def to_object_id(value: Any) -> Any:
    """
    Convert a 24-character hex string to an ObjectId.

    Anything else (other strings, ints, ObjectIds, None) is returned unchanged.
    """
    if (
        isinstance(value, str)
        and len(value) == OBJECT_ID_HEX_LENGTH
        and ObjectId.is_valid(value)
    ):
        return ObjectId(value)
    return value


def to_object_ids(values: Iterable[Any]) -> list[Any]:
    """Apply to_object_id to every value."""
    return [to_object_id(value) for value in values]


def object_id_to_str(value: Any) -> str | None:
    """Return an ObjectId's hex string, a scalar as a string, or None."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, _SCALARS):
        return str(value)
    return None


def _is_document(value: Any) -> bool:
    if value is None or isinstance(value, _SCALARS):
        return False
    return isinstance(value, Mapping) or hasattr(value, "__dict__")


def _as_dict(document: Any) -> dict[str, Any]:
    if isinstance(document, Mapping):
        return dict(document)
    return dict(vars(document))


def to_document(value: Any) -> Any:
    """Convert an attribute bag to a dict; mappings are copied, scalars returned as-is."""
    if not _is_document(value):
        return value
    return _as_dict(value)


def get_field(document: Any, name: str) -> Any:
    """Read a key from a mapping or an attribute from an attribute bag."""
    if document is None:
        return None
    if isinstance(document, Mapping):
        return document.get(name)
    return getattr(document, name, None)


def map_input(document: Any, options: StoreOptions) -> Any:
    """
    Rewrite a filter or document before it is handed to the driver.

    With ``auto_id`` enabled, the public id field moves to ``_id`` and the
    mapped timestamp field (a read-only value) is dropped. Attribute bags are
    converted to dicts since the driver only accepts mappings.

    Args:
        document: Filter or document (dict, attribute bag, scalar or None)
        options: Store options

    Returns:
        A new dict, or the input unchanged when nothing applies
    """
    if not _is_document(document):
        return document

    doc = _as_dict(document)
    if not options.auto_id:
        return doc

    map_id = options.auto_id_map_id
    if map_id is not None and map_id in doc:
        doc[ID_FIELD] = to_object_id(doc.pop(map_id))

    map_timestamp = options.auto_id_map_timestamp
    if map_timestamp is not None:
        doc.pop(map_timestamp, None)

    return doc


def map_input_many(documents: Iterable[Any], options: StoreOptions) -> list[Any]:
    """Apply map_input to every document."""
    return [map_input(doc, options) for doc in documents]


def map_output(document: Mapping[str, Any] | None, options: StoreOptions) -> Any:
    """
    Rewrite a document returned by the driver.

    With ``auto_id`` enabled and a non-null ``_id``:
    - an ObjectId id adds its generation time (Unix seconds) under the mapped
      timestamp field, or ``_ts`` when none is configured
    - with a mapped id field, the id moves there (ObjectIds as hex strings)
      and becomes the first key; ``_id`` is removed
    - otherwise an ObjectId ``_id`` is turned into its hex string and moved
      to the first key

    With ``return_objects`` enabled the result is a SimpleNamespace.
    """
    if document is None:
        return None

    doc = dict(document)

    if options.auto_id and doc.get(ID_FIELD) is not None:
        raw_id = doc[ID_FIELD]
        is_object_id = isinstance(raw_id, ObjectId)

        if is_object_id:
            timestamp_field = options.auto_id_map_timestamp or DEFAULT_TIMESTAMP_FIELD
            doc[timestamp_field] = int(raw_id.generation_time.timestamp())

        public_id = str(raw_id) if is_object_id else raw_id
        map_id = options.auto_id_map_id

        if map_id is not None:
            del doc[ID_FIELD]
            doc = {map_id: public_id, **{k: v for k, v in doc.items() if k != map_id}}
        elif is_object_id:
            del doc[ID_FIELD]
            doc = {ID_FIELD: public_id, **doc}

    if options.return_objects:
        return SimpleNamespace(**doc)
    return doc


def map_output_many(documents: Iterable[Mapping[str, Any]], options: StoreOptions) -> list[Any]:
    """Apply map_output to every document."""
    return [map_output(doc, options) for doc in documents]
