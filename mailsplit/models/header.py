"""Minimal RFC822 header: raw field storage with case-insensitive lookup.

Fields are kept exactly as read so that an unmodified header serializes back
to the same bytes.  Values are decoded as latin-1; no address parsing and no
RFC2047 decoding is attempted.
"""

import re
from typing import Iterator, Optional

# a field ends at a line break that is not followed by folding whitespace
_FIELD_SPLIT_RE = re.compile(rb"\n(?![ \t])")
_FOLD_RE = re.compile(rb"\r?\n(?=[ \t])")
# runs of parameter text; quoted strings are atomic and may hide ';'
_PARAM_RE = re.compile(r'(?:"(?:[^"\\]|\\.)*"?|[^;"])+')
_UNQUOTE_RE = re.compile(r"\\(.)")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return _UNQUOTE_RE.sub(r"\1", value[1:-1])
    return value


def _split_field(raw: bytes) -> tuple[str, str]:
    name, sep, value = raw.partition(b":")
    if not sep:
        return "", raw.decode("latin-1").strip()
    value = _FOLD_RE.sub(b"", value)
    return name.decode("latin-1").strip(), value.decode("latin-1").strip()


class Header:
    """Ordered list of raw header fields.

    ``line_break`` is the blank line that ended the header when it was parsed
    (``b"\\n"`` or ``b"\\r\\n"``), or None when the input had no blank line.
    ``mbox_from`` holds a leading ``From `` envelope line, without its line
    break.
    """

    def __init__(self, line_break: Optional[bytes] = b"\n") -> None:
        self._fields: list[bytes] = []
        self.mbox_from: Optional[bytes] = None
        self.line_break = line_break

    @classmethod
    def parse(cls, raw: bytes, line_break: Optional[bytes] = None) -> "Header":
        header = cls(line_break=line_break)
        fields = _FIELD_SPLIT_RE.split(bytes(raw))
        if fields and not fields[-1]:
            fields.pop()
        if fields and fields[0].startswith(b"From "):
            header.mbox_from = fields.pop(0)
        header._fields = fields
        return header

    # ── field access ──────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        for raw in self._fields:
            yield _split_field(raw)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __setitem__(self, name: str, value: str) -> None:
        """Replace every ``name`` field by one, kept at the first one's position."""
        raw = f"{name}: {value}".encode("latin-1")
        if self.line_break == b"\r\n":
            raw += b"\r"
        index = self._first_index(name)
        del self[name]
        if index is None:
            self._fields.append(raw)
        else:
            self._fields.insert(index, raw)

    def __delitem__(self, name: str) -> None:
        key = name.lower()
        self._fields = [raw for raw in self._fields if _split_field(raw)[0].lower() != key]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        key = name.lower()
        for field_name, value in self:
            if field_name.lower() == key:
                return value
        return default

    def get_all(self, name: str) -> list[str]:
        key = name.lower()
        return [value for field_name, value in self if field_name.lower() == key]

    def names(self) -> list[str]:
        return [field_name for field_name, _ in self]

    @property
    def raw_fields(self) -> list[bytes]:
        return list(self._fields)

    def add_raw(self, raw: bytes) -> None:
        self._fields.append(bytes(raw).rstrip(b"\n"))

    # ── Content-Type ──────────────────────────────────────────────────────────

    @property
    def content_type(self) -> Optional[str]:
        """Lower-cased ``type/subtype``, or None without a Content-Type field."""
        pieces = self._pieces("content-type")
        if not pieces or not pieces[0].strip():
            return None
        return pieces[0].strip().lower()

    @property
    def media_type(self) -> Optional[str]:
        content_type = self.content_type
        return content_type.split("/")[0].strip() if content_type else None

    @property
    def subtype(self) -> Optional[str]:
        content_type = self.content_type
        if not content_type or "/" not in content_type:
            return None
        return content_type.split("/", 1)[1].strip()

    def params(self, field_name: str) -> dict[str, str]:
        """Parameters of ``field_name`` with lower-cased names and unquoted values."""
        return {name: _unquote(value) for name, value in self._params_quoted(field_name).items()}

    def param(self, field_name: str, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self._params_quoted(field_name).get(name.lower())
        return _unquote(value) if value is not None else default

    def set_boundary(self, boundary: str) -> None:
        """Rewrite Content-Type with a new boundary, keeping the other parameters."""
        params = self._params_quoted("content-type")
        params["boundary"] = '"' + boundary.replace("\\", "\\\\").replace('"', '\\"') + '"'
        value = self.content_type or "multipart/mixed"
        for name, quoted in params.items():
            value += f"; {name}={quoted}"
        self["Content-Type"] = value

    # ── serialization ─────────────────────────────────────────────────────────

    def to_bytes(self, include_mbox_from: bool = True) -> bytes:
        """Header fields, each followed by ``\\n``; the blank line is not included."""
        lines = list(self._fields)
        if include_mbox_from and self.mbox_from is not None:
            lines.insert(0, self.mbox_from)
        return b"".join(line + b"\n" for line in lines)

    def __repr__(self) -> str:
        return f"<Header fields={len(self._fields)} mbox_from={self.mbox_from!r}>"

    # ── private ───────────────────────────────────────────────────────────────

    def _first_index(self, name: str) -> Optional[int]:
        key = name.lower()
        for index, raw in enumerate(self._fields):
            if _split_field(raw)[0].lower() == key:
                return index
        return None

    def _pieces(self, field_name: str) -> list[str]:
        value = self.get(field_name)
        if value is None:
            return []
        return _PARAM_RE.findall(value)

    def _params_quoted(self, field_name: str) -> dict[str, str]:
        params: dict[str, str] = {}
        for piece in self._pieces(field_name)[1:]:
            name, _, value = piece.partition("=")
            name = name.strip().lower()
            if name:
                params[name] = value.strip()
        return params
