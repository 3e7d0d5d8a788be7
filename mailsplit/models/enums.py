import enum


class SourceType(str, enum.Enum):
    mbox = "mbox"
    eml = "eml"


class SegmentKind(str, enum.Enum):
    preamble = "preamble"
    part = "part"
    epilogue = "epilogue"
    message = "message"


class ReaderState(str, enum.Enum):
    preamble = "preamble"
    in_part = "in_part"
    between_parts = "between_parts"
    epilogue = "epilogue"
    finished = "finished"
