"""Prometheus remote write protocol implementation.

Implements the protobuf + snappy format required by the Prometheus
remote_write API (version 0.1.0). Fields are written in proto3 canonical
form: scalars equal to their default are left out.
"""

import struct
from typing import Iterator, Tuple, Union

import snappy

from promwrite.errors import EncodingError
from promwrite.metrics.models import Label, TimeSeries, WriteRequest

# Protobuf wire types
WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2
WIRE_FIXED32 = 5

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

_ZERO_DOUBLE = struct.pack("<d", 0.0)


def _encode_varint(value: int) -> bytes:
    """Encode an integer as a protobuf varint.

    Negative numbers use their 64-bit two's complement (ten bytes).
    """
    if value < 0:
        value += 1 << 64
    result = []
    while value > 127:
        result.append((value & 0x7F) | 0x80)
        value >>= 7
    result.append(value)
    return bytes(result)


def _encode_key(field_number: int, wire_type: int) -> bytes:
    return _encode_varint((field_number << 3) | wire_type)


def _encode_message(field_number: int, data: bytes) -> bytes:
    """Encode a length-delimited field."""
    return _encode_key(field_number, WIRE_LENGTH_DELIMITED) + _encode_varint(len(data)) + data


def _encode_string(field_number: int, value: str) -> bytes:
    if not value:
        return b""
    try:
        encoded = value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"string {value!r} is not valid UTF-8: {e}") from e
    return _encode_message(field_number, encoded)


def _encode_double(field_number: int, value: float) -> bytes:
    packed = struct.pack("<d", value)
    # -0.0 and NaN differ from the default bit pattern and are kept
    if packed == _ZERO_DOUBLE:
        return b""
    return _encode_key(field_number, WIRE_FIXED64) + packed


def _encode_int64(field_number: int, value: int) -> bytes:
    if not INT64_MIN <= value <= INT64_MAX:
        raise EncodingError(f"value {value} does not fit in int64")
    if value == 0:
        return b""
    return _encode_key(field_number, WIRE_VARINT) + _encode_varint(value)


def _encode_label(label: Label) -> bytes:
    """Encode a Label message.

    message Label {
        string name = 1;
        string value = 2;
    }
    """
    return _encode_string(1, label.name) + _encode_string(2, label.value)


def _encode_sample(value: float, timestamp_ms: int) -> bytes:
    """Encode a Sample message.

    message Sample {
        double value = 1;
        int64 timestamp = 2;
    }
    """
    return _encode_double(1, value) + _encode_int64(2, timestamp_ms)


def _encode_timeseries(series: TimeSeries) -> bytes:
    """Encode a TimeSeries message.

    message TimeSeries {
        repeated Label labels = 1;
        repeated Sample samples = 2;
    }
    """
    parts = [_encode_message(1, _encode_label(label)) for label in series.labels]
    parts.extend(
        _encode_message(2, _encode_sample(value, timestamp_ms))
        for value, timestamp_ms in series.samples
    )
    return b"".join(parts)


def encode_write_request(request: WriteRequest) -> bytes:
    """Encode a WriteRequest message without compression.

    message WriteRequest {
        repeated TimeSeries timeseries = 1;
    }

    Raises:
        EncodingError: If a string or timestamp cannot be represented.
    """
    return b"".join(
        _encode_message(1, _encode_timeseries(series)) for series in request.series
    )


def encode_remote_write(request: WriteRequest) -> bytes:
    """Encode a WriteRequest for remote_write.

    Returns:
        Snappy-compressed (block format) protobuf data.
    """
    return snappy.compress(encode_write_request(request))


# ---------------------------------------------------------------------------
# Decoding, for inspecting payloads
# ---------------------------------------------------------------------------


def _decode_varint(data: bytes, pos: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise EncodingError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift >= 70:
            raise EncodingError("varint too long")


def _iter_fields(data: bytes) -> Iterator[Tuple[int, int, Union[int, bytes]]]:
    """Yield (field_number, wire_type, value) for each field in a message."""
    pos = 0
    while pos < len(data):
        key, pos = _decode_varint(data, pos)
        field_number, wire_type = key >> 3, key & 0x07

        if wire_type == WIRE_VARINT:
            value, pos = _decode_varint(data, pos)
            yield field_number, wire_type, value
        elif wire_type in (WIRE_FIXED64, WIRE_FIXED32):
            size = 8 if wire_type == WIRE_FIXED64 else 4
            if pos + size > len(data):
                raise EncodingError("truncated fixed-width field")
            yield field_number, wire_type, data[pos:pos + size]
            pos += size
        elif wire_type == WIRE_LENGTH_DELIMITED:
            length, pos = _decode_varint(data, pos)
            if pos + length > len(data):
                raise EncodingError("truncated length-delimited field")
            yield field_number, wire_type, data[pos:pos + length]
            pos += length
        else:
            raise EncodingError(f"unsupported wire type {wire_type}")


def _decode_string(value: Union[int, bytes]) -> str:
    if not isinstance(value, bytes):
        raise EncodingError("expected a length-delimited string")
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"invalid UTF-8 in string field: {e}") from e


def _decode_label(data: bytes) -> Label:
    name = value = ""
    for field_number, _, raw in _iter_fields(data):
        if field_number == 1:
            name = _decode_string(raw)
        elif field_number == 2:
            value = _decode_string(raw)
    return Label(name, value)


def _decode_sample(data: bytes) -> Tuple[float, int]:
    value = 0.0
    timestamp_ms = 0
    for field_number, wire_type, raw in _iter_fields(data):
        if field_number == 1 and wire_type == WIRE_FIXED64:
            value = struct.unpack("<d", raw)[0]
        elif field_number == 2 and wire_type == WIRE_VARINT:
            timestamp_ms = raw - (1 << 64) if raw >= 1 << 63 else raw
    return value, timestamp_ms


def _decode_timeseries(data: bytes) -> TimeSeries:
    series = TimeSeries()
    for field_number, wire_type, raw in _iter_fields(data):
        if wire_type != WIRE_LENGTH_DELIMITED:
            continue
        if field_number == 1:
            series.labels.append(_decode_label(raw))
        elif field_number == 2:
            series.samples.append(_decode_sample(raw))
    return series


def decode_write_request(data: bytes, compressed: bool = True) -> WriteRequest:
    """Decode a remote write payload back into a WriteRequest.

    Unknown fields are skipped. Metric types are not part of the wire format
    and come back unset.

    Args:
        data: Payload bytes.
        compressed: Whether data is snappy-compressed.

    Raises:
        EncodingError: If the payload is not a valid WriteRequest.
    """
    if compressed:
        try:
            data = snappy.decompress(data)
        except snappy.UncompressError as e:
            raise EncodingError(f"invalid snappy data: {e}") from e

    request = WriteRequest()
    for field_number, wire_type, raw in _iter_fields(data):
        if field_number == 1 and wire_type == WIRE_LENGTH_DELIMITED:
            request.series.append(_decode_timeseries(raw))
    return request
