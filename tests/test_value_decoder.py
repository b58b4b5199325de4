import struct

import pytest

from exifutil.exceptions import TruncatedError
from exifutil.tiff_structure import ByteOrder, IFDEntry, IfdKind, TIFFStructure
from exifutil.value_decoder import (
    ErrorValue,
    ExifTagType,
    Rational,
    Value,
    decode_value,
    element_size,
    is_inline,
)
from tiff_builder import rationals


def decode(data_type, count, payload, endian='<', lenient=False):
    """Decode a value stored inline, or at offset 8 when it does not fit."""
    byte_order = ByteOrder.LITTLE_ENDIAN if endian == '<' else ByteOrder.BIG_ENDIAN
    if len(payload) <= 4:
        slot, block = payload.ljust(4, b'\x00'), b'\x00' * 8
        offset = struct.unpack(f'{endian}I', slot)[0]
    else:
        slot, block = struct.pack(f'{endian}I', 8), b'\x00' * 8 + payload
        offset = 8
    item = IFDEntry(
        tag=0x9999, data_type=data_type, count=count,
        value_or_offset=offset, raw_value=slot, ifd=IfdKind.PRIMARY,
    )
    return decode_value(TIFFStructure(memoryview(block), byte_order), item, lenient)


@pytest.mark.parametrize("data_type,size", [
    (1, 1), (2, 1), (3, 2), (4, 4), (5, 8), (6, 1),
    (7, 1), (8, 2), (9, 4), (10, 8), (11, 4), (12, 8),
])
def test_element_sizes(data_type, size):
    assert element_size(data_type) == size


def test_unknown_element_size():
    assert element_size(13) is None


def test_inline_boundary():
    four = IFDEntry(0x010F, 2, 4, 0, b'abc\x00', IfdKind.PRIMARY)
    five = IFDEntry(0x010F, 2, 5, 8, b'\x08\x00\x00\x00', IfdKind.PRIMARY)
    assert is_inline(four)
    assert not is_inline(five)


def test_ascii_inline_and_offset_decode_the_same_text():
    inline = decode(2, 4, b'abc\x00')
    at_offset = decode(2, 5, b'abc\x00\x00')
    assert inline == at_offset == Value(ExifTagType.ASCII, 'abc')


def test_ascii_without_terminator_uses_all_bytes():
    assert decode(2, 6, b'Canon!').data == 'Canon!'


def test_ascii_stops_at_first_nul():
    assert decode(2, 8, b'ab\x00cdef\x00').data == 'ab'


def test_ascii_invalid_bytes_are_preserved():
    value = decode(2, 6, b'caf\xe9!\x00')
    assert value.raw_text() == b'caf\xe9!'
    assert value.display_text() == 'caf\\xe9!'


def test_ascii_utf8_text():
    text = 'Zürich'.encode('utf-8') + b'\x00'
    assert decode(2, len(text), text).data == 'Zürich'


def test_raw_text_rejects_numbers():
    with pytest.raises(TypeError):
        decode(3, 1, b'\x01\x00').raw_text()


def test_rational_is_kept_exact():
    value = decode(5, 1, rationals([(1, 3)]))
    assert value.data == (Rational(1, 3),)
    assert value.data[0].numerator == 1
    assert value.data[0].denominator == 3
    assert isinstance(value.data[0].numerator, int)


def test_rational_with_zero_denominator_is_kept():
    value = decode(5, 1, rationals([(5, 0)]))
    assert value.data == (Rational(5, 0),)
    assert value.data[0].to_float() is None


def test_signed_rational():
    value = decode(10, 2, rationals([(-1, 3), (7, -2)], signed=True))
    assert value.data == (Rational(-1, 3), Rational(7, -2))


def test_numeric_types():
    assert decode(1, 3, b'\x01\x02\x03').data == (1, 2, 3)
    assert decode(6, 2, b'\xff\x7f').data == (-1, 127)
    assert decode(3, 2, b'\x01\x00\x02\x00').data == (1, 2)
    assert decode(8, 1, b'\xfe\xff').data == (-2,)
    assert decode(4, 1, b'\x10\x00\x00\x00').data == (16,)
    assert decode(9, 1, b'\xff\xff\xff\xff').data == (-1,)
    assert decode(11, 1, struct.pack('<f', 1.5)).data == (1.5,)
    assert decode(12, 1, struct.pack('<d', -0.25)).data == (-0.25,)


def test_undefined_is_bytes():
    value = decode(7, 4, b'0232')
    assert value == Value(ExifTagType.UNDEFINED, b'0232')


def test_zero_count():
    assert decode(3, 0, b'').data == ()
    assert decode(2, 0, b'').data == ''


@pytest.mark.parametrize("data_type,code,numbers", [
    (3, "H", (640, 480)),
    (4, "I", (70000,)),
    (5, "I", (72, 1, 1, 3)),
    (8, "h", (-300,)),
    (12, "d", (3.25,)),
])
def test_byte_orders_decode_to_identical_values(data_type, code, numbers):
    count = len(numbers) // 2 if data_type == 5 else len(numbers)
    big = struct.pack(f">{len(numbers)}{code}", *numbers)
    little = struct.pack(f"<{len(numbers)}{code}", *numbers)
    assert decode(data_type, count, big, ">") == decode(data_type, count, little, "<")


def test_unsupported_type_is_an_error_value():
    value = decode(13, 1, b'\x00\x00\x00\x00')
    assert isinstance(value, ErrorValue)
    assert value.is_error
    assert value.data_type == 13
    assert 'unsupported data type 13' in value.reason


def test_offset_past_end_is_truncated():
    item = IFDEntry(0x010F, 2, 20, 500, struct.pack('<I', 500), IfdKind.PRIMARY)
    structure = TIFFStructure(memoryview(b'\x00' * 16), ByteOrder.LITTLE_ENDIAN)
    with pytest.raises(TruncatedError):
        decode_value(structure, item)


def test_offset_past_end_is_an_error_value_when_lenient():
    item = IFDEntry(0x010F, 2, 20, 500, struct.pack('<I', 500), IfdKind.PRIMARY)
    structure = TIFFStructure(memoryview(b'\x00' * 16), ByteOrder.LITTLE_ENDIAN)
    value = decode_value(structure, item, lenient=True)
    assert isinstance(value, ErrorValue)
    assert value.count == 20


def test_rational_str_and_float():
    assert str(Rational(1, 3)) == '1/3'
    assert Rational(3, 4).to_float() == 0.75
