"""
File ingestion - Turn a batch of image files into File nodes.
"""

from __future__ import annotations

import logging
from pathlib import Path

from canal.core.effects import FileEffect
from canal.core.errors import IngestError
from canal.core.graph import GraphStore, Node
from canal.filters.codec import is_image_file

logger = logging.getLogger(__name__)


def ingest_files(store: GraphStore, paths: list[str | Path]) -> list[Node]:
    """
    Create one File node per image file.

    Non-image files are skipped.

    Raises:
        IngestError: If none of the files is an image
    """
    images = [Path(p) for p in paths if is_image_file(p)]
    skipped = len(paths) - len(images)
    if skipped:
        logger.info("Skipping %d non-image file(s)", skipped)

    if not images:
        raise IngestError("Please supply image files (PNG, JPEG, etc.)")

    return [
        store.add_node(FileEffect(file_name=path.name, source_ref=path), label="File")
        for path in images
    ]
