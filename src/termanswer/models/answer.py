from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class OutputOption(StrEnum):
    LINKS = "links"  # Only question titles and links
    ALL = "all"  # Full answer text, code included
    ONLY_CODE = "only_code"  # First code block of the answer


class AnswerConfig(BaseModel):
    """Per-query options, usually built from command-line flags."""

    option: OutputOption = OutputOption.ONLY_CODE
    numbers: int = Field(default=1, ge=1)  # Maximum number of answers
    colorize: bool = False
