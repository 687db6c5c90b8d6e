from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field


class CodeSampleModel(BaseModel):
    code: str
    lang: Optional[str] = Field(default=None, description="Detected language tag, or null when unknown")


class FragmentModel(BaseModel):
    text: str
    code: List[CodeSampleModel] = Field(default_factory=list)


class ResearchResponse(BaseModel):
    topic: str
    summary: str = ""
    sources: List[str] = Field(default_factory=list)
    fragments: List[FragmentModel] = Field(default_factory=list)
    # Wire name kept camelCase for existing consumers
    notFound: bool = Field(default=False, description="True when no page yielded any readable content")


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
