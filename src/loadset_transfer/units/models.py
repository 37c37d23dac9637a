"""Value types for quantities and model unit systems."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from loadset_transfer.units.registry import Dimension

PLACEHOLDERS = {
    Dimension.FORCE: "Force",
    Dimension.LENGTH: "Length",
    Dimension.TEMPERATURE_DELTA: "Temperature",
}


class UnitQuantity(BaseModel):
    """A magnitude tagged with the unit it was authored in."""

    model_config = ConfigDict(frozen=True)

    magnitude: float
    unit_label: str = Field(description="Unit label as shown to the user, e.g. 'kN/m²'")
    dimension: Dimension


class UnitSystem(BaseModel):
    """Present units of a model. Unknown parts are ``None``."""

    model_config = ConfigDict(frozen=True)

    force: str | None = Field(default=None, description="Force unit label, e.g. 'kN'")
    length: str | None = Field(default=None, description="Length unit label, e.g. 'm'")
    temperature: str | None = Field(default=None, description="Temperature unit label, e.g. 'C'")

    @field_validator("force", "length", "temperature", mode="before")
    @classmethod
    def _blank_is_unknown(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @classmethod
    def parse(cls, text: str) -> "UnitSystem":
        """Build from ``"force,length[,temperature]"``, e.g. ``"kN,m,C"``."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) not in (2, 3):
            raise ValueError(f"Expected 'force,length[,temperature]', got: {text!r}")
        force, length = parts[0], parts[1]
        temperature = parts[2] if len(parts) == 3 else None
        return cls(force=force, length=length, temperature=temperature)

    def label_for(self, dimension: Dimension) -> str | None:
        if dimension is Dimension.FORCE:
            return self.force
        if dimension is Dimension.LENGTH:
            return self.length
        if dimension is Dimension.TEMPERATURE_DELTA:
            return self.temperature
        return None

    def display(self, dimension: Dimension) -> str:
        return self.label_for(dimension) or PLACEHOLDERS[dimension]

    @property
    def summary(self) -> str:
        return "-".join(
            self.display(d) for d in (Dimension.LENGTH, Dimension.FORCE, Dimension.TEMPERATURE_DELTA)
        )
