from typing import Optional

from pydantic import BaseModel


class PartSummary(BaseModel):
    content_type: Optional[str]
    # body length for single parts; None when the part had no body at all
    size: Optional[int] = None
    boundary: Optional[str] = None
    preamble_size: Optional[int] = None
    epilogue_size: Optional[int] = None
    parts: list["PartSummary"] = []


class MessageSummary(BaseModel):
    index: int
    folder_path: str
    offset: Optional[int]
    mbox_from: Optional[str]
    subject: Optional[str]
    message_id: Optional[str]
    part_count: int
    structure: PartSummary
