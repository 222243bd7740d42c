"""Tests for the binary record codec."""

import struct

import pytest

from forma.codec import MAGIC, SCHEMA_VERSION, decode, encode, read_records, write_records
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

LOC = PixelLocation(500, 28, 8, 10, 20)


class TestEncodeDecode:
    """Tests for encode / decode of the value types."""

    @pytest.mark.parametrize(
        "obj",
        [
            FireTuple(1, 2, 3, 4),
            FormaValue(None, -0.5, 1.25, 3.0),
            FormaValue(FireTuple(0, 0, 1, 1), -0.5, 1.25, 3.0),
            NeighborStats(FireTuple(1, 1, 1, 1), 3, 0.5, -1.0, 0.25, -2.0, 1.5, 0.0),
            SeriesRecord("ndvi", "16", LOC, IntSeries(827, 829, [7000, -9999, 6900])),
            SeriesRecord("precl", "32", LOC, DoubleSeries(431, 432, [0.5, 12.25])),
            SeriesRecord("fire", "32", LOC, FireSeries.from_values(431, [FireTuple(count=1)] * 2)),
            DataChunk("ndvi", "16", "2005-12-19", ChunkLocation(500, 28, 8, 3, 4), [1, 2, 3, 4]),
            StaticChunk("vcf", 500, "028008", 0, [25, 80]),
            FireObservation(LOC, "2006-02-10", FireTuple(1, 0, 0, 1)),
        ],
    )
    def test_decode_restores_value(self, obj):
        assert decode(encode(obj)) == obj

    def test_series_variant_preserved(self):
        rec = decode(encode(SeriesRecord("ndvi", "32", LOC, IntSeries(0, 1, [1, 2]))))
        assert isinstance(rec.series, IntSeries)

    def test_float_chunk_values(self):
        chunk = StaticChunk("vcf", 500, "028008", 0, [0.5, 1.5])
        assert decode(encode(chunk)).values == (0.5, 1.5)

    def test_unknown_type(self):
        with pytest.raises(CodecError):
            encode(object())

    def test_truncated_record(self):
        data = encode(FireTuple(1, 2, 3, 4))
        with pytest.raises(CodecError):
            decode(data[:-3])

    def test_unknown_field_is_skipped(self):
        """Fields added by a later writer are ignored."""
        data = encode(FireTuple(1, 2, 3, 4))
        tag, version, n_fields = struct.unpack_from("<BBH", data, 0)
        extra = struct.pack("<BBI", 99, 1, 8) + struct.pack("<q", 123)
        patched = struct.pack("<BBH", tag, version, n_fields + 1) + data[4:] + extra
        assert decode(patched) == FireTuple(1, 2, 3, 4)

    def test_missing_field_raises(self):
        data = encode(FireTuple(1, 2, 3, 4))
        tag, version, n_fields = struct.unpack_from("<BBH", data, 0)
        # drop the last field (6 header bytes + 8 payload bytes)
        patched = struct.pack("<BBH", tag, version, n_fields - 1) + data[4:-14]
        with pytest.raises(CodecError):
            decode(patched)

    def test_newer_schema_version_rejected(self):
        data = bytearray(encode(FireTuple()))
        data[1] = SCHEMA_VERSION + 1
        with pytest.raises(CodecError):
            decode(bytes(data))


class TestRecordFiles:
    """Tests for framed record files."""

    def test_write_then_read(self, tmp_path):
        path = tmp_path / "fires.frma"
        records = [FireObservation(LOC, "2006-02-10", FireTuple(1, 0, 0, 1)), FireTuple(2, 2, 2, 2)]
        assert write_records(path, records) == 2
        assert list(read_records(path)) == records

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.frma"
        write_records(path, [])
        assert list(read_records(path)) == []

    def test_bad_magic(self, tmp_path):
        path = tmp_path / "bad.frma"
        path.write_bytes(b"NOPE\x01")
        with pytest.raises(CodecError):
            list(read_records(path))

    def test_truncated_frame(self, tmp_path):
        path = tmp_path / "short.frma"
        write_records(path, [FireTuple(1, 1, 1, 1)])
        path.write_bytes(path.read_bytes()[:-2])
        with pytest.raises(CodecError):
            list(read_records(path))

    def test_header(self, tmp_path):
        path = tmp_path / "h.frma"
        write_records(path, [])
        assert path.read_bytes() == MAGIC + bytes([SCHEMA_VERSION])
