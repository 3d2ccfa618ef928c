"""Pydantic schemas for RPC requests and responses.

Hashes travel as hexadecimal strings; value validation happens when the
handler converts them into domain types.
"""

from pydantic import BaseModel, Field

# --- Request schemas ---


class HashRequest(BaseModel):
    hash: str


class AddTagsRequest(BaseModel):
    hash: str
    tags: list[str] = Field(default_factory=list)


class GetMultipleTagsRequest(BaseModel):
    hashes: list[str] = Field(default_factory=list)


class SrcDestRequest(BaseModel):
    src_hash: str
    dest_hash: str


# --- Response schemas ---


class TagsResponse(BaseModel):
    tags: list[str] = Field(default_factory=list)


class GetMultipleTagsResponse(BaseModel):
    tags: list[TagsResponse] = Field(default_factory=list)


class EmptyResponse(BaseModel):
    pass


class ErrorResponse(BaseModel):
    code: str
    message: str
