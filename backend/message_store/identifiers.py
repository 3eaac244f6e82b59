"""
Message Store Backend - Identifier Validation
=============================================

What:  Parses path-supplied message identifiers into BSON ObjectIds.
How:   Accepts only the 24-character hexadecimal form the store hands out.
When:  Before every store call that targets a single record.
"""

import re

from bson import ObjectId

from message_store.exceptions import ValidationError

_OBJECT_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


def is_valid_message_id(raw: object) -> bool:
    """
    True if ``raw`` is exactly 24 hexadecimal characters.

    fullmatch, not match with $: $ also matches before a trailing newline.
    """
    return isinstance(raw, str) and _OBJECT_ID_PATTERN.fullmatch(raw) is not None


def parse_message_id(raw: object) -> ObjectId:
    """
    Convert a path identifier into an ObjectId.

    ObjectId() alone also accepts 12-byte values and ObjectId instances,
    so the hex form is checked explicitly first.

    Raises:
        ValidationError: ``raw`` is not a 24-character hex string.
    """
    if not is_valid_message_id(raw):
        raise ValidationError(
            message="Invalid message ID",
            field="id",
            context={"value": str(raw)[:64]},
        )
    return ObjectId(raw)
