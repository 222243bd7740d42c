"""
Binary codec for FORMA value types.

Every record is written against an explicit schema table: a one-byte type
tag, the schema version, then one entry per field holding the field tag,
a wire type and the payload length. Decoders skip field tags they do not
know, so fields can be added without breaking older files.

Record layout (little-endian)::

    u8 type_tag | u8 version | u16 n_fields | fields...
    field: u8 field_tag | u8 wire_type | u32 length | payload

Record files start with ``MAGIC`` and the schema version, followed by
``u32 length | record`` frames.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, Iterator, Tuple, Union

import numpy as np

from forma.errors import CodecError
from forma.schema import (
    ChunkLocation,
    DataChunk,
    DoubleSeries,
    FireObservation,
    FireSeries,
    FireTuple,
    FormaValue,
    IntSeries,
    NeighborStats,
    PixelLocation,
    SeriesRecord,
    StaticChunk,
)

__all__ = [
    "SCHEMA_VERSION",
    "MAGIC",
    "encode",
    "decode",
    "write_records",
    "read_records",
]

SCHEMA_VERSION = 1
MAGIC = b"FRMA"

# Wire types
WIRE_NONE = 0
WIRE_INT = 1
WIRE_FLOAT = 2
WIRE_STR = 3
WIRE_INTS = 4
WIRE_FLOATS = 5
WIRE_RECORD = 6
WIRE_RECORDS = 7
# resolved to WIRE_INTS or WIRE_FLOATS from the data at encode time
WIRE_NUMERIC = 8

_RECORD_HEAD = struct.Struct("<BBH")
_FIELD_HEAD = struct.Struct("<BBI")
_U32 = struct.Struct("<I")
_I64 = struct.Struct("<q")
_F64 = struct.Struct("<d")

# type tag -> (class, ((field tag, attribute, wire type), ...))
_SCHEMAS: Dict[int, Tuple[type, Tuple[Tuple[int, str, int], ...]]] = {
    1: (FireTuple, (
        (1, "temp330", WIRE_INT),
        (2, "conf50", WIRE_INT),
        (3, "both_preds", WIRE_INT),
        (4, "count", WIRE_INT),
    )),
    2: (FormaValue, (
        (1, "fire", WIRE_RECORD),
        (2, "short_drop", WIRE_FLOAT),
        (3, "long_drop", WIRE_FLOAT),
        (4, "t_stat", WIRE_FLOAT),
    )),
    3: (NeighborStats, (
        (1, "fire_sum", WIRE_RECORD),
        (2, "neighbor_count", WIRE_INT),
        (3, "avg_short_drop", WIRE_FLOAT),
        (4, "min_short_drop", WIRE_FLOAT),
        (5, "avg_long_drop", WIRE_FLOAT),
        (6, "min_long_drop", WIRE_FLOAT),
        (7, "avg_t_stat", WIRE_FLOAT),
        (8, "min_t_stat", WIRE_FLOAT),
    )),
    4: (IntSeries, (
        (1, "start", WIRE_INT),
        (2, "end", WIRE_INT),
        (3, "values", WIRE_INTS),
    )),
    5: (DoubleSeries, (
        (1, "start", WIRE_INT),
        (2, "end", WIRE_INT),
        (3, "values", WIRE_FLOATS),
    )),
    6: (FireSeries, (
        (1, "start", WIRE_INT),
        (2, "end", WIRE_INT),
        (3, "values", WIRE_RECORDS),
    )),
    7: (PixelLocation, (
        (1, "s_res", WIRE_INT),
        (2, "tile_h", WIRE_INT),
        (3, "tile_v", WIRE_INT),
        (4, "sample", WIRE_INT),
        (5, "line", WIRE_INT),
    )),
    8: (ChunkLocation, (
        (1, "s_res", WIRE_INT),
        (2, "tile_h", WIRE_INT),
        (3, "tile_v", WIRE_INT),
        (4, "chunk_id", WIRE_INT),
        (5, "chunk_size", WIRE_INT),
    )),
    9: (DataChunk, (
        (1, "dataset", WIRE_STR),
        (2, "t_res", WIRE_STR),
        (3, "date", WIRE_STR),
        (4, "location", WIRE_RECORD),
        (5, "values", WIRE_NUMERIC),
    )),
    10: (StaticChunk, (
        (1, "dataset", WIRE_STR),
        (2, "s_res", WIRE_INT),
        (3, "tilestring", WIRE_STR),
        (4, "chunk_id", WIRE_INT),
        (5, "values", WIRE_NUMERIC),
    )),
    11: (SeriesRecord, (
        (1, "dataset", WIRE_STR),
        (2, "t_res", WIRE_STR),
        (3, "location", WIRE_RECORD),
        (4, "series", WIRE_RECORD),
    )),
    12: (FireObservation, (
        (1, "location", WIRE_RECORD),
        (2, "date", WIRE_STR),
        (3, "fire", WIRE_RECORD),
    )),
}

_TAGS = {cls: tag for tag, (cls, _) in _SCHEMAS.items()}


def _encode_value(wire: int, value: Any) -> Tuple[int, bytes]:
    if value is None:
        return WIRE_NONE, b""
    if wire == WIRE_INT:
        return wire, _I64.pack(int(value))
    if wire == WIRE_FLOAT:
        return wire, _F64.pack(float(value))
    if wire == WIRE_STR:
        return wire, str(value).encode("utf-8")
    if wire == WIRE_NUMERIC:
        kind = np.asarray(value).dtype.kind if len(value) else "i"
        wire = WIRE_INTS if kind in ("i", "u", "b") else WIRE_FLOATS
    if wire == WIRE_INTS:
        return wire, np.asarray(value, dtype="<i8").tobytes()
    if wire == WIRE_FLOATS:
        return wire, np.asarray(value, dtype="<f8").tobytes()
    if wire == WIRE_RECORD:
        return wire, encode(value)
    if wire == WIRE_RECORDS:
        parts = [_U32.pack(len(value))]
        for item in value:
            payload = encode(item)
            parts.append(_U32.pack(len(payload)))
            parts.append(payload)
        return wire, b"".join(parts)
    raise CodecError("unknown wire type", {"wire": wire})


def _decode_value(wire: int, payload: bytes) -> Any:
    if wire == WIRE_NONE:
        return None
    if wire == WIRE_INT:
        return _I64.unpack(payload)[0]
    if wire == WIRE_FLOAT:
        return _F64.unpack(payload)[0]
    if wire == WIRE_STR:
        return payload.decode("utf-8")
    if wire == WIRE_INTS:
        return np.frombuffer(payload, dtype="<i8").tolist()
    if wire == WIRE_FLOATS:
        return np.frombuffer(payload, dtype="<f8").tolist()
    if wire == WIRE_RECORD:
        return decode(payload)
    if wire == WIRE_RECORDS:
        (count,) = _U32.unpack_from(payload, 0)
        offset = _U32.size
        items = []
        for _ in range(count):
            (length,) = _U32.unpack_from(payload, offset)
            offset += _U32.size
            items.append(decode(payload[offset:offset + length]))
            offset += length
        return items
    raise CodecError("unknown wire type", {"wire": wire})


def encode(obj: Any) -> bytes:
    """Encode one value type instance."""
    tag = _TAGS.get(type(obj))
    if tag is None:
        raise CodecError("type has no codec schema", {"type": type(obj).__name__})
    _, fields = _SCHEMAS[tag]
    parts = [_RECORD_HEAD.pack(tag, SCHEMA_VERSION, len(fields))]
    for field_tag, attr, wire in fields:
        wire_out, payload = _encode_value(wire, getattr(obj, attr))
        parts.append(_FIELD_HEAD.pack(field_tag, wire_out, len(payload)))
        parts.append(payload)
    return b"".join(parts)


def decode(data: bytes) -> Any:
    """Decode one record produced by ``encode``."""
    try:
        tag, version, n_fields = _RECORD_HEAD.unpack_from(data, 0)
    except struct.error as exc:
        raise CodecError("truncated record header") from exc
    if version > SCHEMA_VERSION:
        raise CodecError("unsupported schema version", {"version": version})
    if tag not in _SCHEMAS:
        raise CodecError("unknown record type", {"tag": tag})

    cls, fields = _SCHEMAS[tag]
    by_tag = {field_tag: attr for field_tag, attr, _ in fields}
    kwargs = {}
    offset = _RECORD_HEAD.size
    for _ in range(n_fields):
        try:
            field_tag, wire, length = _FIELD_HEAD.unpack_from(data, offset)
        except struct.error as exc:
            raise CodecError("truncated field header", {"type": cls.__name__}) from exc
        offset += _FIELD_HEAD.size
        payload = data[offset:offset + length]
        if len(payload) != length:
            raise CodecError("truncated field payload", {"type": cls.__name__})
        offset += length
        attr = by_tag.get(field_tag)
        if attr is not None:
            kwargs[attr] = _decode_value(wire, payload)

    missing = [attr for _, attr, _ in fields if attr not in kwargs]
    if missing:
        raise CodecError("record is missing fields", {"type": cls.__name__, "fields": missing})
    return cls(**kwargs)


def _write_stream(f: BinaryIO, records: Iterable[Any]) -> int:
    f.write(MAGIC)
    f.write(bytes([SCHEMA_VERSION]))
    n = 0
    for record in records:
        payload = encode(record)
        f.write(_U32.pack(len(payload)))
        f.write(payload)
        n += 1
    return n


def write_records(path: Union[str, Path], records: Iterable[Any]) -> int:
    """Write records to a framed file; returns the number written."""
    with open(path, "wb") as f:
        return _write_stream(f, records)


def read_records(path: Union[str, Path]) -> Iterator[Any]:
    """Iterate over the records of a framed file."""
    with open(path, "rb") as f:
        head = f.read(len(MAGIC) + 1)
        if len(head) != len(MAGIC) + 1 or head[:len(MAGIC)] != MAGIC:
            raise CodecError("not a FORMA record file", {"path": str(path)})
        if head[len(MAGIC)] > SCHEMA_VERSION:
            raise CodecError("unsupported schema version", {"version": head[len(MAGIC)]})
        while True:
            frame = f.read(_U32.size)
            if not frame:
                return
            if len(frame) != _U32.size:
                raise CodecError("truncated frame length", {"path": str(path)})
            (length,) = _U32.unpack(frame)
            payload = f.read(length)
            if len(payload) != length:
                raise CodecError("truncated frame", {"path": str(path)})
            yield decode(payload)
