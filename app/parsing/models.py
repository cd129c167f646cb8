from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SourceType = Literal["txt", "docx", "pdf"]


class SourceDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes = Field(repr=False)
    size: int = Field(ge=0)

    @classmethod
    def from_bytes(cls, content: bytes, filename: str) -> "SourceDocument":
        return cls(filename=filename, content=content, size=len(content))

    @property
    def extension(self) -> str:
        name = self.filename.strip()
        return name.rsplit(".", 1)[-1].lower() if "." in name else ""


class ExtractedText(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    source_type: SourceType
    text: str

    @field_validator("text")
    @classmethod
    def _validate_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must contain non-whitespace characters")
        return value

    @property
    def characters(self) -> int:
        return len(self.text)
