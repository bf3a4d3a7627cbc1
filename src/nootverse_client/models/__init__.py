"""Record and session models for the Nootverse client."""

from nootverse_client.models.schema import (
    Note,
    NoteInput,
    Record,
    RecordInput,
    RecordKind,
    Scope,
    Session,
    Stats,
    Universe,
    UniverseInput,
)

__all__ = [
    "Note",
    "NoteInput",
    "Record",
    "RecordInput",
    "RecordKind",
    "Scope",
    "Session",
    "Stats",
    "Universe",
    "UniverseInput",
]
