from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SearchStrategy = Literal["direct", "parallel-optimized"]


class AnswerMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    answer: str
    count: int


class Manifest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_entries: int = Field(alias="totalEntries")
    chunk_count: int = Field(alias="chunkCount")
    build_time: datetime = Field(alias="buildTime")
    # length -> bucket -> shard file name
    chunks: dict[int, dict[str, str]] = Field(default_factory=dict)


class Shard(BaseModel):
    model_config = ConfigDict(frozen=True)

    answers: list[AnswerMatch] = Field(default_factory=list)
    clues: dict[str, list[str]] = Field(default_factory=dict)


class PatternAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pattern: str
    length: int
    wildcard_count: int = Field(alias="wildcardCount")
    wildcard_positions: list[int] = Field(alias="wildcardPositions")
    starts_with_wildcard: bool = Field(alias="startsWithWildcard")
    is_high_cost_pattern: bool = Field(alias="isHighCostPattern")
    search_strategy: SearchStrategy = Field(alias="searchStrategy")

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)
