"""Usage Stats — Upload Payload Schemas.

Parsing never rejects a payload: absent or null fields become empty strings,
non-string scalars are stringified, unusable counts become 0 and malformed
containers are dropped.
"""

import json
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, field_validator

# stats.count is a BIGINT column
COUNT_MIN = -(2**63)
COUNT_MAX = 2**63 - 1


def _as_text(value: Any) -> str:
    """Coerce a JSON value into a natural-key string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, sort_keys=True)


def _only_objects(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class _LenientModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any, info) -> Any:
        if cls.model_fields[info.field_name].annotation is str:
            return _as_text(value)
        return value


class StatPayload(_LenientModel):
    """Usage count of one plugin object."""

    id: str = ""
    version: str = ""
    name: str = ""
    label: str = ""
    description: str = ""
    count: int = 0

    @field_validator("count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        if isinstance(value, bool):
            return 0
        try:
            count = int(value)
        except (TypeError, ValueError, OverflowError):
            return 0
        return count if COUNT_MIN <= count <= COUNT_MAX else 0


class SitePayload(_LenientModel):
    """An update site and the stats of the objects it provides."""

    name: str = ""
    url: str = ""
    stats: List[StatPayload] = []

    @field_validator("stats", mode="before")
    @classmethod
    def _coerce_stats(cls, value: Any) -> List[Dict[str, Any]]:
        return _only_objects(value)


class UsagePayload(_LenientModel):
    """A full client upload.

    Environment fields are kept as raw strings; the dimension registry maps
    them onto table columns.
    """

    user: str = ""
    user_country: str = ""
    user_language: str = ""
    user_timezone: str = ""
    os_name: str = ""
    os_arch: str = ""
    os_version: str = ""
    java_runtime_name: str = ""
    java_runtime_version: str = ""
    java_specification_name: str = ""
    java_specification_vendor: str = ""
    java_specification_version: str = ""
    java_vendor: str = ""
    java_version: str = ""
    java_vm_name: str = ""
    java_vm_vendor: str = ""
    java_vm_version: str = ""
    java_vm_specification_name: str = ""
    java_vm_specification_vendor: str = ""
    java_vm_specification_version: str = ""
    sites: List[SitePayload] = []

    @field_validator("sites", mode="before")
    @classmethod
    def _coerce_sites(cls, value: Any) -> List[Dict[str, Any]]:
        return _only_objects(value)

    @classmethod
    def from_body(cls, body: bytes | str) -> "UsagePayload":
        """Decode a raw request body; malformed JSON yields an empty payload."""
        try:
            data = json.loads(body)
        except (TypeError, ValueError, RecursionError):
            data = None
        if not isinstance(data, dict):
            data = {}
        return cls.model_validate(data)
