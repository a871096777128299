from reflector.schemas.inputs import (
    FalsificationIn,
    InfluenceSourceIn,
    ProvenanceEntryIn,
    ReflectionIn,
    ResponseIn,
    RestatementIn,
    SchemaReclaimIn,
)

__all__ = [
    "FalsificationIn",
    "InfluenceSourceIn",
    "ProvenanceEntryIn",
    "ReflectionIn",
    "ResponseIn",
    "RestatementIn",
    "SchemaReclaimIn",
]
