"""Usage Stats — Versioned Dimension Registry.

Defines which environment dimensions each schema revision resolves and how
upload fields map onto dimension columns. Tracking a new dimension means
registering it here and adding it to a new revision; the collector code
does not change.
"""

from typing import Dict, List, Tuple, Type

from sqlmodel import SQLModel

from app.models.dimension_models import (
    Country,
    JavaProfile,
    Language,
    OperatingSystem,
    PluginObject,
    Timezone,
    UpdateSite,
    User,
)
from app.models.fact_models import Event, Stat


class DimensionDefinition:
    """Describes an environment dimension resolved once per upload."""

    def __init__(
        self,
        name: str,
        model: Type[SQLModel],
        key_column: str,
        fields: Dict[str, str],
    ):
        self.name = name
        self.model = model
        self.key_column = key_column  # surrogate key, also the events column
        self.fields = fields  # table column -> upload field

    def natural_key(self, payload) -> Dict[str, str]:
        """Extract this dimension's natural key from an upload."""
        return {column: getattr(payload, field) for column, field in self.fields.items()}

    def __repr__(self) -> str:
        return f"<Dimension {self.name} ({self.model.__tablename__})>"


class SchemaRevision:
    """A tracked dimension set and the tables it needs."""

    def __init__(self, number: int, dimensions: List[str], models_events: bool):
        self.number = number
        self.dimensions = [ENVIRONMENT_DIMENSIONS[name] for name in dimensions]
        self.models_events = models_events

    @property
    def models(self) -> List[Type[SQLModel]]:
        models: List[Type[SQLModel]] = [d.model for d in self.dimensions]
        models += [UpdateSite, PluginObject]
        if self.models_events:
            models.append(Event)
        models.append(Stat)
        return models

    @property
    def tables(self) -> list:
        return [model.__table__ for model in self.models]

    def __repr__(self) -> str:
        return f"<SchemaRevision {self.number}: {[d.name for d in self.dimensions]}>"


# ─────────────────────────────────────────────
# ENVIRONMENT DIMENSIONS — one row per distinct value
# ─────────────────────────────────────────────

ENVIRONMENT_DIMENSIONS: Dict[str, DimensionDefinition] = {
    "user": DimensionDefinition("user", User, "user_id", {"user": "user"}),
    "country": DimensionDefinition(
        "country", Country, "country_id", {"name": "user_country"}
    ),
    "language": DimensionDefinition(
        "language", Language, "language_id", {"name": "user_language"}
    ),
    "timezone": DimensionDefinition(
        "timezone", Timezone, "timezone_id", {"name": "user_timezone"}
    ),
    "os": DimensionDefinition(
        "os",
        OperatingSystem,
        "os_id",
        {"name": "os_name", "arch": "os_arch", "version": "os_version"},
    ),
    "java": DimensionDefinition(
        "java",
        JavaProfile,
        "java_id",
        {
            "runtime_name": "java_runtime_name",
            "runtime_version": "java_runtime_version",
            "spec_name": "java_specification_name",
            "spec_vendor": "java_specification_vendor",
            "spec_version": "java_specification_version",
            "vendor": "java_vendor",
            "version": "java_version",
            "vm_name": "java_vm_name",
            "vm_vendor": "java_vm_vendor",
            "vm_version": "java_vm_version",
            "vm_spec_name": "java_vm_specification_name",
            "vm_spec_vendor": "java_vm_specification_vendor",
            "vm_spec_version": "java_vm_specification_version",
        },
    ),
}


# ─────────────────────────────────────────────
# SCHEMA REVISIONS — sites/objects/stats are always tracked
# ─────────────────────────────────────────────

_REVISION_SPECS: List[Tuple[int, List[str], bool]] = [
    (1, [], False),
    (2, ["user", "country", "language", "timezone"], True),
    (3, ["user", "country", "language", "timezone", "os", "java"], True),
]

SCHEMA_REVISIONS: Dict[int, SchemaRevision] = {
    number: SchemaRevision(number, dimensions, events)
    for number, dimensions, events in _REVISION_SPECS
}

LATEST_REVISION = max(SCHEMA_REVISIONS)


def get_revision(number: int) -> SchemaRevision:
    """Look up a schema revision, raising ValueError for unknown numbers."""
    try:
        return SCHEMA_REVISIONS[number]
    except KeyError:
        raise ValueError(
            f"Unknown schema revision {number}; expected one of {sorted(SCHEMA_REVISIONS)}"
        ) from None
