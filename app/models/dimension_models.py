"""Usage Stats — Dimension Tables.

Each table maps a natural key to a surrogate integer key. Rows are created on
first sight and never updated. The unique constraint on every natural key is
what lets concurrent uploads of the same new value converge on one row.
"""

from typing import Optional
from sqlalchemy import Column, Text
from sqlmodel import SQLModel, Field, UniqueConstraint


class User(SQLModel, table=True):
    """Submitting user; the name may be blank."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("user", name="uq_users"),)

    user_id: Optional[int] = Field(default=None, primary_key=True)
    user: str = Field(default="")


class Country(SQLModel, table=True):
    __tablename__ = "countries"
    __table_args__ = (UniqueConstraint("name", name="uq_countries"),)

    country_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="")


class Language(SQLModel, table=True):
    __tablename__ = "languages"
    __table_args__ = (UniqueConstraint("name", name="uq_languages"),)

    language_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="")


class Timezone(SQLModel, table=True):
    __tablename__ = "timezones"
    __table_args__ = (UniqueConstraint("name", name="uq_timezones"),)

    timezone_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="")


class OperatingSystem(SQLModel, table=True):
    __tablename__ = "os"
    __table_args__ = (UniqueConstraint("name", "arch", "version", name="uq_os"),)

    os_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="")
    arch: str = Field(default="")
    version: str = Field(default="")


class JavaProfile(SQLModel, table=True):
    """Java installation profile, keyed by all thirteen system properties."""

    __tablename__ = "java"
    __table_args__ = (
        UniqueConstraint(
            "runtime_name",
            "runtime_version",
            "spec_name",
            "spec_vendor",
            "spec_version",
            "vendor",
            "version",
            "vm_name",
            "vm_vendor",
            "vm_version",
            "vm_spec_name",
            "vm_spec_vendor",
            "vm_spec_version",
            name="uq_java",
        ),
    )

    java_id: Optional[int] = Field(default=None, primary_key=True)
    runtime_name: str = Field(default="")
    runtime_version: str = Field(default="")
    spec_name: str = Field(default="")
    spec_vendor: str = Field(default="")
    spec_version: str = Field(default="")
    vendor: str = Field(default="")
    version: str = Field(default="")
    vm_name: str = Field(default="")
    vm_vendor: str = Field(default="")
    vm_version: str = Field(default="")
    vm_spec_name: str = Field(default="")
    vm_spec_vendor: str = Field(default="")
    vm_spec_version: str = Field(default="")


class UpdateSite(SQLModel, table=True):
    """Plugin distribution source."""

    __tablename__ = "sites"
    __table_args__ = (UniqueConstraint("name", "url", name="uq_sites"),)

    site_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="")
    url: str = Field(default="")


class PluginObject(SQLModel, table=True):
    """Identifiable object (e.g. a plugin command) at a given version.

    Only (identifier, version) is the natural key; the remaining columns are
    taken from the upload that first introduced the pair.
    """

    __tablename__ = "objects"
    __table_args__ = (
        UniqueConstraint("identifier", "version", name="uq_objects"),
    )

    object_id: Optional[int] = Field(default=None, primary_key=True)
    identifier: str = Field(default="", index=True)
    site_id: Optional[int] = Field(default=None)
    version: str = Field(default="")
    name: str = Field(default="")
    label: str = Field(default="")
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
