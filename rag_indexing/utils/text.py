"""
Text Processing Utilities

Identifier and label helpers shared by the chunkers and the tree builder.
"""

from __future__ import annotations

import re

_CHUNK_LABEL_PATTERN = re.compile(r"^chunk_(\d+)_(\d+)$")


def utf8_len(text: str) -> int:
    """Length of text in UTF-8 bytes."""
    return len(text.encode("utf-8"))


def chunk_label(index: int, text: str) -> str:
    """Hierarchy label for a text leaf: chunk_{index}_{utf8 size}"""
    return f"chunk_{index}_{utf8_len(text)}"


def table_label(index: int) -> str:
    """Hierarchy label for a table leaf: table_{index}"""
    return f"table_{index}"


def image_label(index: int) -> str:
    """Hierarchy label for an image leaf: img_{index}"""
    return f"img_{index}"


def parse_chunk_label(label: str) -> tuple[int, int] | None:
    """
    Parse a chunk_{index}_{size} label.

    Returns:
        (index, size) or None if the label is not a chunk label
    """
    match = _CHUNK_LABEL_PATTERN.match(label)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def generate_faq_id(category: str, sequence: int) -> str:
    """Generate FAQ ID: faq-{category-slug}-{sequence:03d}"""
    slug = category.strip().replace(" ", "-").lower()
    return f"faq-{slug}-{sequence:03d}"


def generate_faq_chunk_id(faq_id: str, sequence: int) -> str:
    """Generate FAQ chunk ID: {faq_id}-chunk-{sequence}"""
    return f"{faq_id}-chunk-{sequence}"
