"""Data models for model tables, load sets and assignments."""

from pydantic import BaseModel, ConfigDict, Field


class TableSchema(BaseModel):
    """Field layout of a table as returned by one schema fetch.

    ``version`` must be echoed back unchanged when staging edits against
    this layout.
    """

    model_config = ConfigDict(frozen=True)

    table_key: str
    version: int
    field_keys: tuple[str, ...]

    @property
    def field_count(self) -> int:
        return len(self.field_keys)


class LoadSetRecord(BaseModel):
    """One load pattern entry of a shell uniform load set."""

    set_name: str = Field(description="Load set name, e.g. 'ULoadSet1'")
    load_pattern: str = Field(default="", description="Load pattern, e.g. 'SDL' or 'LL'")
    value: float = Field(default=0.0, description="Magnitude in the source model's force/length² units")
    unit: str = Field(default="", description="Display unit of value, e.g. 'kN/m²'")


class LoadSetGroup(BaseModel):
    """A load set and its member records, in source order."""

    name: str
    records: list[LoadSetRecord] = Field(default_factory=list)

    @property
    def has_records(self) -> bool:
        return len(self.records) > 0


class OutboundLoadSetRow(BaseModel):
    """A load set row ready to be written, magnitude already in target units."""

    model_config = ConfigDict(frozen=True)

    set_name: str
    load_pattern: str = ""
    value: float = 0.0


class OutboundAssignment(BaseModel):
    """A load set assignment for a target area object."""

    model_config = ConfigDict(frozen=True)

    object_key: str = Field(description="Unique name of the area object in the target model")
    load_set: str


class AreaIdentifier(BaseModel):
    """A selected area (floor) object of the source model."""

    guid: str = ""
    unique_name: str
    label: str = ""


class SlabAssignment(BaseModel):
    """A source area object, its assigned load set and the correlated target area."""

    source_guid: str = ""
    source_unique_name: str
    source_label: str = ""
    assigned_load_set: str = ""
    target_unique_name: str = ""
