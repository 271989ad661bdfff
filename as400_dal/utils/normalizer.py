"""
Value normalization for raw AS400 driver output.

Legacy CHAR columns come back padded with blanks, and text stored under a
non-UTF-8 CCSID can reach Python as a str carrying lone surrogates (a
`surrogateescape` decode). `ValueNormalizer` trims the padding and repairs the
encoding so callers always see clean UTF-8 text.

Bytes are binary data (BLOB, BINARY, VARBINARY) and pass through untouched.
Drivers that hand CCSID 65535 text back as bytes can opt in to decoding with
``decode_bytes=True``.

This runs per field per row, so clean values take the cheapest path: strip,
an `isascii()` check, and no re-encoding.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple, Type


class ValueNormalizer:
    """
    Trim and re-encode string values, recursing through rows and lists of rows.

    Parameters
    ----------
    legacy_encoding : str
        Encoding used to decode text that is not valid UTF-8.
    decode_bytes : bool
        Treat ``bytes`` values as text: decode, then trim. Off by default so
        binary columns survive a read unchanged.
    """

    def __init__(self, legacy_encoding: str = "latin-1", decode_bytes: bool = False) -> None:
        self.legacy_encoding = legacy_encoding
        self.decode_bytes = decode_bytes
        self._text_types: Tuple[Type[Any], ...] = (str, bytes) if decode_bytes else (str,)

    def normalize(self, value: Any) -> Any:
        """Clean a scalar, a row, or a list of rows."""
        if isinstance(value, self._text_types):
            return self._clean_text(value)
        if isinstance(value, Mapping):
            return self._clean_mapping(value)
        if isinstance(value, list):
            return self._clean_list(value)
        return value

    def normalize_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Single-row fast path used by the streaming reader."""
        text_types = self._text_types
        return {
            key: self._clean_text(value) if isinstance(value, text_types) else value
            for key, value in row.items()
        }

    def _clean_list(self, values: List[Any]) -> List[Any]:
        if values and isinstance(values[0], Mapping):
            # List of rows: the common result-set shape.
            return [
                self.normalize_row(row) if isinstance(row, Mapping) else row for row in values
            ]
        return [self.normalize(value) for value in values]

    def _clean_mapping(self, row: Mapping[Any, Any]) -> Dict[Any, Any]:
        cleaned: Dict[Any, Any] = {}
        for key, value in row.items():
            if isinstance(value, self._text_types):
                cleaned[key] = self._clean_text(value)
            elif isinstance(value, (Mapping, list)):
                cleaned[key] = self.normalize(value)
            else:
                cleaned[key] = value
        return cleaned

    def _clean_text(self, value: Any) -> str:
        if isinstance(value, bytes):
            try:
                text = value.decode("utf-8")
            except UnicodeDecodeError:
                text = value.decode(self.legacy_encoding, errors="replace")
            return text.strip()

        trimmed = value.strip()
        if trimmed.isascii() or _is_valid_utf8(trimmed):
            return trimmed
        try:
            raw = trimmed.encode("utf-8", errors="surrogateescape")
        except UnicodeEncodeError:
            return trimmed.encode("utf-8", errors="replace").decode("utf-8")
        return raw.decode(self.legacy_encoding, errors="replace")


def _is_valid_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


__all__ = ["ValueNormalizer"]
