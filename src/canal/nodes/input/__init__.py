"""
Input effects - File and Text sources, plus batch file ingestion.
"""

from canal.nodes.input.ingest import ingest_files
from canal.nodes.input.sources import FILE_EFFECT, TEXT_EFFECT, register_input_effects

__all__ = ["FILE_EFFECT", "TEXT_EFFECT", "ingest_files", "register_input_effects"]
