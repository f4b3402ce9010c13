"""
schemas.py - Pydantic schemas for the export formats.

Field names are the on-disk contract of the structured export and of the
SRT payload line; they are camelCase as consumed by existing players.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .changes import Change


class ChangeSchema(BaseModel):
    """One element of the structured (JSON) export array."""
    sequence: int = Field(ge=1)
    file: str
    start_time: int = Field(alias="startTime", ge=0)
    end_time: int = Field(alias="endTime", ge=0)
    language: str
    text: str

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_change(cls, change: Change) -> "ChangeSchema":
        return cls(
            sequence=change.sequence,
            file=change.file,
            start_time=change.start_time,
            end_time=change.end_time,
            language=change.language,
            text=change.text,
        )

    def to_change(self) -> Change:
        return Change(
            sequence=self.sequence,
            file=self.file,
            start_time=self.start_time,
            end_time=self.end_time,
            language=self.language,
            text=self.text,
        )


class SubtitlePayloadSchema(BaseModel):
    """The structured line of one SRT block."""
    text: str
    file: str
    language: str


ChangeListAdapter = TypeAdapter(List[ChangeSchema])
