import struct

import pytest

from exifutil import read_exif
from exifutil.config import DecoderOptions
from exifutil.core import MetadataDecoder
from exifutil.exceptions import (
    InvalidMagicError,
    MalformedDirectoryError,
    MetadataReadError,
    TruncatedError,
    UnsupportedContainerError,
)
from exifutil.format_detector import ContainerFormat
from exifutil.tiff_structure import ByteOrder, IfdKind
from exifutil.value_decoder import ErrorValue, ExifTagType, Rational, Value
from tiff_builder import (
    ASCII,
    LONG,
    RATIONAL,
    entry,
    header,
    ifd,
    ifd_size,
    jpeg_with_exif,
    minimal_tiff,
    rationals,
    short_entry,
)


def test_minimal_jpeg_end_to_end():
    data = bytes.fromhex(
        'FFD8'
        'FFE1' '0022'
        '457869660000'
        '4949' '2A00' '08000000'
        '0100'
        '1201' '0300' '01000000' '01000000'
        '00000000'
    )
    exif = MetadataDecoder().decode(data)
    assert exif.container_format is ContainerFormat.JPEG
    assert exif.byte_order is ByteOrder.LITTLE_ENDIAN
    assert len(exif) == 1
    field = exif.fields[0]
    assert field.tag == 0x0112
    assert field.ifd is IfdKind.PRIMARY
    assert field.data_type == 3
    assert field.value == Value(ExifTagType.SHORT, (1,))
    assert field.name == 'Orientation'


@pytest.mark.parametrize("count", [0, 1, 5, 12])
def test_fields_follow_directory_order(count):
    tags = [0x0100 + i for i in range(count)]
    data = minimal_tiff([short_entry(tag, i) for i, tag in enumerate(tags)])
    exif = read_exif(data)
    assert [field.tag for field in exif] == tags
    assert [field.value.data for field in exif] == [(i,) for i in range(count)]


def test_little_and_big_endian_files_decode_identically():
    def build(endian):
        make = b'Camera\x00\x00'
        data_offset = 8 + ifd_size(3)
        return (
            header(endian, 8)
            + ifd([
                entry(0x010F, ASCII, len(make), data_offset, endian),
                short_entry(0x0112, 6, endian),
                entry(0x011A, RATIONAL, 1, data_offset + len(make), endian),
            ], 0, endian)
            + make
            + rationals([(72, 1)], endian)
        )

    little = read_exif(build('<'))
    big = read_exif(build('>'))
    assert big.byte_order is ByteOrder.BIG_ENDIAN
    assert [f.value for f in little] == [f.value for f in big]
    assert little.fields[0].value.data == 'Camera'


def test_sub_ifds_are_decoded_in_place():
    exif_offset = 8 + ifd_size(3)
    gps_offset = exif_offset + ifd_size(1)
    lat_offset = gps_offset + ifd_size(2)
    exposure_offset = lat_offset + 24
    data = (
        header('<', 8)
        + ifd([
            entry(0x010F, ASCII, 4, b'XYZ\x00'),
            entry(0x8769, LONG, 1, exif_offset),
            entry(0x8825, LONG, 1, gps_offset),
        ])
        + ifd([entry(0x829A, RATIONAL, 1, exposure_offset)])
        + ifd([entry(0x0001, ASCII, 2, b'N\x00'), entry(0x0002, RATIONAL, 3, lat_offset)])
        + rationals([(35, 1), (39, 1), (2928, 100)])
        + rationals([(1, 60)])
    )
    exif = read_exif(data)
    assert [(f.group, f.name) for f in exif] == [
        ('IFD0', 'Make'),
        ('IFD0', 'ExifIFDPointer'),
        ('ExifIFD', 'ExposureTime'),
        ('IFD0', 'GPSInfoIFDPointer'),
        ('GPS', 'GPSLatitudeRef'),
        ('GPS', 'GPSLatitude'),
    ]
    assert exif.get_field(0x829A, IfdKind.EXIF).value.data == (Rational(1, 60),)
    assert exif.get_field(0x0002, IfdKind.GPS).display_value(exif.fields) == '35 deg 39 min 29.28 sec N'


def test_gps_and_image_tags_with_the_same_number_are_kept_apart():
    gps_offset = 8 + ifd_size(2)
    data = (
        header('<', 8)
        + ifd([short_entry(0x0001, 7), entry(0x8825, LONG, 1, gps_offset)])
        + ifd([entry(0x0001, ASCII, 2, b'S\x00')])
    )
    exif = read_exif(data)
    assert exif.get_field(0x0001).value.data == (7,)
    assert exif.get_field(0x0001, IfdKind.GPS).value.data == 'S'
    assert exif.get_field(0x0002) is None


def test_unsupported_field_type_does_not_stop_the_walk():
    data = minimal_tiff([
        short_entry(0x0100, 640),
        entry(0x0101, 13, 1, 8),
        short_entry(0x0112, 1),
    ])
    exif = read_exif(data)
    assert len(exif) == 3
    assert exif.fields[0].ok and exif.fields[2].ok
    assert isinstance(exif.fields[1].value, ErrorValue)
    assert exif.errors == [exif.fields[1]]


def test_pointer_with_wrong_type_is_a_field_error():
    exif = read_exif(minimal_tiff([entry(0x8769, ASCII, 4, b'abc\x00')]))
    assert len(exif) == 1
    assert not exif.fields[0].ok
    assert 'single LONG' in exif.fields[0].value.reason


def test_value_offset_past_end_is_fatal():
    data = minimal_tiff([entry(0x010F, ASCII, 10, 4000)])
    with pytest.raises(TruncatedError):
        read_exif(data)


def test_value_offset_past_end_is_kept_when_lenient():
    data = minimal_tiff([entry(0x010F, ASCII, 10, 4000), short_entry(0x0112, 3)])
    exif = read_exif(data, DecoderOptions(lenient_values=True))
    assert not exif.fields[0].ok
    assert exif.fields[1].value.data == (3,)


def test_ifd0_offset_past_end_is_truncated():
    with pytest.raises(TruncatedError):
        read_exif(header('<', 4096))


def test_exif_pointer_cycle_is_malformed():
    data = minimal_tiff([short_entry(0x0112, 1), entry(0x8769, LONG, 1, 8)])
    with pytest.raises(MalformedDirectoryError):
        read_exif(data)


def test_invalid_magic_inside_jpeg():
    data = jpeg_with_exif(header('<', 8, magic=7) + ifd([]))
    with pytest.raises(InvalidMagicError):
        read_exif(data)


def test_structural_error_names_the_file(tmp_path):
    path = tmp_path / 'broken.tif'
    path.write_bytes(header('<', 4096))
    with pytest.raises(TruncatedError) as excinfo:
        read_exif(path)
    assert excinfo.value.file_path == str(path)
    assert str(path) in str(excinfo.value)
    assert 'Truncated' in str(excinfo.value)


def test_unreadable_file(tmp_path):
    with pytest.raises(MetadataReadError):
        read_exif(tmp_path / 'missing.jpg')


def test_not_an_image():
    with pytest.raises(UnsupportedContainerError):
        read_exif(b'plain text, not an image')


def test_decode_file(tmp_path):
    path = tmp_path / 'photo.jpg'
    path.write_bytes(jpeg_with_exif(minimal_tiff([short_entry(0x0112, 8)])))
    exif = MetadataDecoder().decode_file(path)
    assert exif.file_path == str(path)
    assert exif.to_dict() == {'IFD0:Orientation': 'row 0 at left and column 0 at bottom'}


def test_iter_fields_is_lazy():
    ifd1_offset = 4096
    data = header('<', 8) + ifd([short_entry(0x0112, 1)], next_offset=ifd1_offset)
    fields = MetadataDecoder().iter_fields(data)
    assert next(fields).tag == 0x0112
    with pytest.raises(TruncatedError):
        next(fields)
    # decode() returns all fields or none
    with pytest.raises(TruncatedError):
        MetadataDecoder().decode(data)


def test_thumbnail_fields():
    ifd1_offset = 8 + ifd_size(1)
    data = (
        header('<', 8)
        + ifd([short_entry(0x0112, 1)], next_offset=ifd1_offset)
        + ifd([short_entry(0x0103, 6), entry(0x0201, LONG, 1, 1234)])
    )
    exif = read_exif(data)
    assert [f.group for f in exif] == ['IFD0', 'IFD1', 'IFD1']
    assert exif.get_field(0x0103, IfdKind.THUMBNAIL).display_value() == 'JPEG (old-style)'
    assert len(read_exif(data, DecoderOptions(follow_thumbnail=False))) == 1


def test_float_and_double_fields():
    data_offset = 8 + ifd_size(2)
    data = (
        header('>', 8)
        + ifd([
            entry(0x9400, 11, 1, struct.pack('>f', 21.5), '>'),
            entry(0x9999, 12, 1, data_offset, '>'),
        ], 0, '>')
        + struct.pack('>d', 0.125)
    )
    exif = read_exif(data)
    assert exif.fields[0].value.data == (21.5,)
    assert exif.fields[1].value.data == (0.125,)
    assert exif.fields[1].name == 'Unknown_9999'


def test_iter_fields_names_the_file_in_errors():
    data = header('<', 8) + ifd([short_entry(0x0112, 1)], next_offset=4096)
    fields = MetadataDecoder().iter_fields(data, 'scan.tif')
    next(fields)
    with pytest.raises(TruncatedError) as excinfo:
        next(fields)
    assert excinfo.value.file_path == 'scan.tif'


def test_non_finite_float_fields_are_displayed():
    data = minimal_tiff([
        entry(0x9999, 11, 1, struct.pack('<f', float('nan'))),
        entry(0x9998, 11, 1, struct.pack('<f', float('-inf'))),
    ])
    assert read_exif(data).to_dict() == {'IFD0:Unknown_9999': 'nan', 'IFD0:Unknown_9998': '-inf'}
