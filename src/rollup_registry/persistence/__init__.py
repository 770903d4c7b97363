from rollup_registry.persistence.previous import (
    DirectoryRecordSource,
    InMemoryRecordSource,
    MalformedRecordError,
    PreviousRecordSource,
    RecordIdentity,
    RecordSourceError,
    RemoteRecordSource,
)

__all__ = [
    "DirectoryRecordSource",
    "InMemoryRecordSource",
    "MalformedRecordError",
    "PreviousRecordSource",
    "RecordIdentity",
    "RecordSourceError",
    "RemoteRecordSource",
]
