# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Value formatter for converting decoded EXIF values to human-readable strings.

Display depends on a static table keyed by (directory group, tag).
Some tags are shown with the help of a sibling tag from the same
directory, e.g. GPSLatitude uses GPSLatitudeRef for its hemisphere and
XResolution uses ResolutionUnit. Formatting never modifies the value.

Copyright 2025 DNAi inc.
"""

import math
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Tuple

from exifutil.tiff_structure import IfdKind
from exifutil.value_decoder import ExifTagType, Rational, Value

if TYPE_CHECKING:
    from exifutil.core import Field

IMAGE = 'image'
EXIF = 'exif'
GPS = 'gps'
INTEROP = 'interop'

_GROUPS = {
    IfdKind.PRIMARY: IMAGE,
    IfdKind.THUMBNAIL: IMAGE,
    IfdKind.IMAGE: IMAGE,
    IfdKind.EXIF: EXIF,
    IfdKind.GPS: GPS,
    IfdKind.INTEROP: INTEROP,
}

_INTEGER_TYPES = (
    ExifTagType.BYTE, ExifTagType.SBYTE, ExifTagType.SHORT,
    ExifTagType.SSHORT, ExifTagType.LONG, ExifTagType.SLONG,
)
_RATIONAL_TYPES = (ExifTagType.RATIONAL, ExifTagType.SRATIONAL)

# Longest UNDEFINED value shown as hex
_MAX_HEX_BYTES = 16


# ============================================================
# Enumerations
# ============================================================
_ENUMS: Dict[Tuple[str, int], Dict[int, str]] = {
    (IMAGE, 0x0103): {  # Compression
        1: 'uncompressed',
        2: 'CCITT 1D',
        3: 'T4/Group 3 Fax',
        4: 'T6/Group 4 Fax',
        5: 'LZW',
        6: 'JPEG (old-style)',
        7: 'JPEG',
        8: 'Deflate',
        32773: 'PackBits',
    },
    (IMAGE, 0x0106): {  # PhotometricInterpretation
        0: 'WhiteIsZero',
        1: 'BlackIsZero',
        2: 'RGB',
        3: 'RGB Palette',
        4: 'Transparency Mask',
        5: 'CMYK',
        6: 'YCbCr',
        8: 'CIELab',
        32803: 'Color Filter Array',
        34892: 'Linear Raw',
    },
    (IMAGE, 0x0112): {  # Orientation
        1: 'row 0 at top and column 0 at left',
        2: 'row 0 at top and column 0 at right',
        3: 'row 0 at bottom and column 0 at right',
        4: 'row 0 at bottom and column 0 at left',
        5: 'row 0 at left and column 0 at top',
        6: 'row 0 at right and column 0 at top',
        7: 'row 0 at right and column 0 at bottom',
        8: 'row 0 at left and column 0 at bottom',
    },
    (IMAGE, 0x0128): {1: 'no absolute unit', 2: 'inch', 3: 'cm'},  # ResolutionUnit
    (IMAGE, 0x011C): {1: 'chunky', 2: 'planar'},  # PlanarConfiguration
    (IMAGE, 0x0213): {1: 'centered', 2: 'co-sited'},  # YCbCrPositioning
    (EXIF, 0x8822): {  # ExposureProgram
        0: 'not defined',
        1: 'manual',
        2: 'normal program',
        3: 'aperture priority',
        4: 'shutter priority',
        5: 'creative program',
        6: 'action program',
        7: 'portrait mode',
        8: 'landscape mode',
    },
    (EXIF, 0x8830): {  # SensitivityType
        0: 'unknown',
        1: 'SOS',
        2: 'REI',
        3: 'ISO speed',
        4: 'SOS/REI',
        5: 'SOS/ISO speed',
        6: 'REI/ISO speed',
        7: 'SOS/REI/ISO speed',
    },
    (EXIF, 0x9207): {  # MeteringMode
        0: 'unknown',
        1: 'average',
        2: 'center-weighted average',
        3: 'spot',
        4: 'multi-spot',
        5: 'pattern',
        6: 'partial',
        255: 'other',
    },
    (EXIF, 0x9208): {  # LightSource
        0: 'unknown',
        1: 'daylight',
        2: 'fluorescent',
        3: 'tungsten',
        4: 'flash',
        9: 'fine weather',
        10: 'cloudy weather',
        11: 'shade',
        17: 'standard light A',
        18: 'standard light B',
        19: 'standard light C',
        20: 'D55',
        21: 'D65',
        22: 'D75',
        23: 'D50',
        24: 'ISO studio tungsten',
        255: 'other',
    },
    (EXIF, 0xA001): {1: 'sRGB', 0xFFFF: 'uncalibrated'},  # ColorSpace
    (EXIF, 0xA210): {1: 'no absolute unit', 2: 'inch', 3: 'cm'},  # FocalPlaneResolutionUnit
    (EXIF, 0xA217): {  # SensingMethod
        1: 'not defined',
        2: 'one-chip color area sensor',
        3: 'two-chip color area sensor',
        4: 'three-chip color area sensor',
        5: 'color sequential area sensor',
        7: 'trilinear sensor',
        8: 'color sequential linear sensor',
    },
    (EXIF, 0xA401): {0: 'normal process', 1: 'custom process'},  # CustomRendered
    (EXIF, 0xA402): {0: 'auto exposure', 1: 'manual exposure', 2: 'auto bracket'},  # ExposureMode
    (EXIF, 0xA403): {0: 'auto white balance', 1: 'manual white balance'},  # WhiteBalance
    (EXIF, 0xA406): {0: 'standard', 1: 'landscape', 2: 'portrait', 3: 'night scene'},  # SceneCaptureType
    (EXIF, 0xA407): {  # GainControl
        0: 'none',
        1: 'low gain up',
        2: 'high gain up',
        3: 'low gain down',
        4: 'high gain down',
    },
    (EXIF, 0xA408): {0: 'normal', 1: 'soft', 2: 'hard'},  # Contrast
    (EXIF, 0xA409): {0: 'normal', 1: 'low saturation', 2: 'high saturation'},  # Saturation
    (EXIF, 0xA40A): {0: 'normal', 1: 'soft', 2: 'hard'},  # Sharpness
    (EXIF, 0xA40C): {0: 'unknown', 1: 'macro', 2: 'close view', 3: 'distant view'},  # SubjectDistanceRange
    (EXIF, 0xA460): {0: 'unknown', 1: 'non-composite', 2: 'general composite', 3: 'composite at capture'},
    (GPS, 0x0005): {  # GPSAltitudeRef
        0: 'above sea level',
        1: 'below sea level',
    },
    (GPS, 0x001E): {0: 'without correction', 1: 'correction applied'},  # GPSDifferential
}

# ============================================================
# Plain unit suffixes
# ============================================================
_UNITS: Dict[Tuple[str, int], str] = {
    (EXIF, 0x920A): 'mm',     # FocalLength
    (EXIF, 0xA405): 'mm',     # FocalLengthIn35mmFilm
    (EXIF, 0x9206): 'm',      # SubjectDistance
    (EXIF, 0x9201): 'EV',     # ShutterSpeedValue (APEX)
    (EXIF, 0x9202): 'EV',     # ApertureValue (APEX)
    (EXIF, 0x9203): 'EV',     # BrightnessValue (APEX)
    (EXIF, 0x9205): 'EV',     # MaxApertureValue (APEX)
    (EXIF, 0xA20B): 'BCPS',   # FlashEnergy
    (EXIF, 0x9400): 'degC',   # Temperature
    (EXIF, 0x9401): '%',      # Humidity
    (EXIF, 0x9402): 'hPa',    # Pressure
    (EXIF, 0x9403): 'm',      # WaterDepth
    (EXIF, 0x9404): 'mGal',   # Acceleration
    (EXIF, 0x9405): 'deg',    # CameraElevationAngle
    (GPS, 0x001F): 'm',       # GPSHPositioningError
}

# Coordinate tag -> hemisphere reference tag
_GPS_COORDINATE_REFS = {0x0002: 0x0001, 0x0004: 0x0003, 0x0014: 0x0013, 0x0016: 0x0015}

# Direction tag -> reference tag (T = true north, M = magnetic north)
_GPS_DIRECTION_REFS = {0x000F: 0x000E, 0x0011: 0x0010, 0x0018: 0x0017}

_GPS_SPEED_UNITS = {'K': 'km/h', 'M': 'mph', 'N': 'knots'}
_GPS_DISTANCE_UNITS = {'K': 'km', 'M': 'mi', 'N': 'nmi'}
_GPS_DIRECTION_NAMES = {'T': 'true', 'M': 'magnetic'}


def _decimal(number: float) -> str:
    """Format a number with at most four decimals and no trailing zeros."""
    if not math.isfinite(number):
        return str(number)
    if number == int(number):
        return str(int(number))
    return f"{number:.4f}".rstrip('0').rstrip('.')


def _rational(r: Rational) -> str:
    if r.denominator == 0:
        return str(r)
    return _decimal(r.numerator / r.denominator)


def _format_bytes(data: bytes) -> str:
    if len(data) > _MAX_HEX_BYTES:
        return f"({len(data)} bytes)"
    return '0x' + data.hex() if data else ''


def format_default(value: Value) -> str:
    """Format a value from its data type alone."""
    if value.data_type == ExifTagType.ASCII:
        return value.display_text()
    if value.data_type == ExifTagType.UNDEFINED:
        return _format_bytes(value.data)
    if value.data_type in _RATIONAL_TYPES:
        return ', '.join(_rational(r) for r in value.data)
    if value.data_type in (ExifTagType.FLOAT, ExifTagType.DOUBLE):
        return ', '.join(_decimal(x) for x in value.data)
    return ', '.join(str(x) for x in value.data)


def _sibling(field: 'Field', fields: Sequence['Field'], tag: int) -> Optional[Value]:
    """Value of another tag from the same directory, if present and valid."""
    for other in fields:
        if (other.tag == tag and other.ifd is field.ifd
                and other.ifd_index == field.ifd_index and other.ok):
            return other.value
    return None


def _sibling_text(field: 'Field', fields: Sequence['Field'], tag: int) -> Optional[str]:
    value = _sibling(field, fields, tag)
    if value is None or value.data_type != ExifTagType.ASCII:
        return None
    return value.data.strip() or None


def _single_rational(value: Value) -> Optional[Rational]:
    if value.data_type in _RATIONAL_TYPES and len(value.data) == 1:
        return value.data[0]
    return None


# ============================================================
# Tag-specific formatters; returning None falls back to the default
# ============================================================
def _resolution(unit_tag: int, unit_group: str):
    def format_resolution(field, value, fields):
        r = _single_rational(value)
        if r is None:
            return None
        unit_value = _sibling(field, fields, unit_tag)
        # TIFF default unit is inch
        unit = unit_value.first if unit_value is not None and unit_value.data_type in _INTEGER_TYPES else 2
        unit_name = _ENUMS[(unit_group, unit_tag)].get(unit)
        if unit == 1 or unit_name is None:
            return _rational(r)
        return f"{_rational(r)} pixels per {unit_name}"
    return format_resolution


def _exposure_time(field, value, fields):
    r = _single_rational(value)
    if r is None or r.denominator == 0:
        return None
    if r.numerator == 0:
        return "0 s"
    if 0 < r.numerator < r.denominator:
        if r.denominator % r.numerator == 0:
            return f"1/{r.denominator // r.numerator} s"
        return f"{r.numerator}/{r.denominator} s"
    return f"{_rational(r)} s"


def _f_number(field, value, fields):
    r = _single_rational(value)
    if r is None or r.denominator == 0:
        return None
    return f"f/{_rational(r)}"


def _exposure_bias(field, value, fields):
    r = _single_rational(value)
    if r is None or r.denominator == 0:
        return None
    number = r.numerator / r.denominator
    sign = '+' if number > 0 else ''
    return f"{sign}{_decimal(number)} EV"


def _flash(field, value, fields):
    if value.data_type not in _INTEGER_TYPES or len(value.data) != 1:
        return None
    bits = value.data[0]
    parts = ['fired' if bits & 0x01 else 'not fired']
    mode = (bits >> 3) & 0x03
    if mode == 1:
        parts.append('forced')
    elif mode == 2:
        parts.append('suppressed')
    elif mode == 3:
        parts.append('auto mode')
    if (bits >> 1) & 0x03 == 2:
        parts.append('no return light detected')
    elif (bits >> 1) & 0x03 == 3:
        parts.append('return light detected')
    if bits & 0x20:
        parts.append('no flash function')
    if bits & 0x40:
        parts.append('red-eye reduction')
    return ', '.join(parts)


def _version(field, value, fields):
    """ExifVersion "0232" -> "2.32"."""
    if value.data_type != ExifTagType.UNDEFINED or len(value.data) != 4:
        return None
    text = value.data.decode('ascii', 'replace')
    if not text.isdigit():
        return None
    return f"{int(text[:2])}.{text[2:]}"


def _components(field, value, fields):
    names = {0: '_', 1: 'Y', 2: 'Cb', 3: 'Cr', 4: 'R', 5: 'G', 6: 'B'}
    if value.data_type != ExifTagType.UNDEFINED:
        return None
    return ' '.join(names.get(b, '?') for b in value.data)


def _encoded_text(field, value, fields):
    """UserComment and similar: 8-byte character code, then text."""
    if value.data_type != ExifTagType.UNDEFINED or len(value.data) < 8:
        return None
    code, body = value.data[:8], value.data[8:]
    if code.startswith(b'UNICODE'):
        encoding = 'utf-16-be' if body[:1] == b'\x00' else 'utf-16-le'
        text = body.decode(encoding, 'replace')
    elif code.startswith(b'ASCII') or code == b'\x00' * 8:
        text = body.decode('utf-8', 'backslashreplace')
    else:
        return None
    return text.rstrip('\x00 ')


def _xp_text(field, value, fields):
    """Windows XP* tags: UTF-16LE in a BYTE array."""
    if value.data_type != ExifTagType.BYTE:
        return None
    return bytes(value.data).decode('utf-16-le', 'replace').rstrip('\x00')


def _lens_specification(field, value, fields):
    if value.data_type not in _RATIONAL_TYPES or len(value.data) != 4:
        return None
    min_focal, max_focal, min_f, max_f = (
        _rational(r) if r.denominator else '?' for r in value.data
    )
    focal = min_focal if min_focal == max_focal else f"{min_focal}-{max_focal}"
    aperture = min_f if min_f == max_f else f"{min_f}-{max_f}"
    return f"{focal} mm f/{aperture}"


def _gps_coordinate(field, value, fields):
    if value.data_type not in _RATIONAL_TYPES or len(value.data) != 3:
        return None
    if any(r.denominator == 0 for r in value.data):
        return None
    degrees, minutes, seconds = (_rational(r) for r in value.data)
    text = f"{degrees} deg {minutes} min {seconds} sec"
    ref = _sibling_text(field, fields, _GPS_COORDINATE_REFS[field.tag])
    return f"{text} {ref}" if ref else text


def _gps_altitude(field, value, fields):
    r = _single_rational(value)
    if r is None or r.denominator == 0:
        return None
    text = f"{_rational(r)} m"
    ref = _sibling(field, fields, 0x0005)
    if ref is not None and ref.data_type in _INTEGER_TYPES and ref.data:
        name = _ENUMS[(GPS, 0x0005)].get(ref.data[0])
        if name:
            text = f"{text} {name}"
    return text


def _gps_time(field, value, fields):
    if value.data_type not in _RATIONAL_TYPES or len(value.data) != 3:
        return None
    if any(r.denominator == 0 for r in value.data):
        return None
    hours, minutes, seconds = (r.numerator / r.denominator for r in value.data)
    second_text = _decimal(seconds)
    if seconds < 10:
        second_text = '0' + second_text
    return f"{int(hours):02d}:{int(minutes):02d}:{second_text} UTC"


def _gps_with_ref(ref_tag: int, units: Dict[str, str]):
    def format_with_ref(field, value, fields):
        r = _single_rational(value)
        if r is None or r.denominator == 0:
            return None
        unit = units.get(_sibling_text(field, fields, ref_tag) or '')
        return f"{_rational(r)} {unit}" if unit else _rational(r)
    return format_with_ref


def _gps_direction(field, value, fields):
    r = _single_rational(value)
    if r is None or r.denominator == 0:
        return None
    text = f"{_rational(r)} deg"
    ref = _GPS_DIRECTION_NAMES.get(_sibling_text(field, fields, _GPS_DIRECTION_REFS[field.tag]) or '')
    return f"{text} ({ref})" if ref else text


def _gps_version(field, value, fields):
    if value.data_type != ExifTagType.BYTE:
        return None
    return '.'.join(str(b) for b in value.data)


Formatter = Callable[['Field', Value, Sequence['Field']], Optional[str]]

_FORMATTERS: Dict[Tuple[str, int], Formatter] = {
    (IMAGE, 0x011A): _resolution(0x0128, IMAGE),
    (IMAGE, 0x011B): _resolution(0x0128, IMAGE),
    (IMAGE, 0x9C9B): _xp_text,
    (IMAGE, 0x9C9C): _xp_text,
    (IMAGE, 0x9C9D): _xp_text,
    (IMAGE, 0x9C9E): _xp_text,
    (IMAGE, 0x9C9F): _xp_text,
    (EXIF, 0x829A): _exposure_time,
    (EXIF, 0x829D): _f_number,
    (EXIF, 0x9204): _exposure_bias,
    (EXIF, 0x9209): _flash,
    (EXIF, 0x9000): _version,
    (EXIF, 0xA000): _version,
    (EXIF, 0x9101): _components,
    (EXIF, 0x9286): _encoded_text,
    (EXIF, 0xA20E): _resolution(0xA210, EXIF),
    (EXIF, 0xA20F): _resolution(0xA210, EXIF),
    (EXIF, 0xA432): _lens_specification,
    (GPS, 0x0000): _gps_version,
    (GPS, 0x0002): _gps_coordinate,
    (GPS, 0x0004): _gps_coordinate,
    (GPS, 0x0014): _gps_coordinate,
    (GPS, 0x0016): _gps_coordinate,
    (GPS, 0x0006): _gps_altitude,
    (GPS, 0x0007): _gps_time,
    (GPS, 0x000D): _gps_with_ref(0x000C, _GPS_SPEED_UNITS),
    (GPS, 0x001A): _gps_with_ref(0x0019, _GPS_DISTANCE_UNITS),
    (GPS, 0x000F): _gps_direction,
    (GPS, 0x0011): _gps_direction,
    (GPS, 0x0018): _gps_direction,
    (GPS, 0x001B): _encoded_text,
    (GPS, 0x001C): _encoded_text,
    (INTEROP, 0x0002): _version,
}


def format_value(field: 'Field', fields: Sequence['Field'] = ()) -> str:
    """
    Format a field's value as a human-readable string with its unit.

    Args:
        field: Field to format
        fields: All fields of the file, for tags displayed with a sibling

    Returns:
        Display string; "<error: ...>" for fields that failed to decode
    """
    value = field.value
    if value.is_error:
        return f"<error: {value.reason}>"

    key = (_GROUPS[field.ifd], field.tag)

    formatter = _FORMATTERS.get(key)
    if formatter is not None:
        text = formatter(field, value, fields)
        if text is not None:
            return text

    enum = _ENUMS.get(key)
    if enum is not None and value.data_type in _INTEGER_TYPES and len(value.data) == 1:
        number = value.data[0]
        return enum.get(number, f"unknown ({number})")

    unit = _UNITS.get(key)
    if unit is not None and value.data_type != ExifTagType.ASCII:
        return f"{format_default(value)} {unit}"

    return format_default(value)


def describe_fields(fields: List['Field']) -> List[Tuple[str, str]]:
    """(name, display value) pairs for every field, in order."""
    return [(field.name, format_value(field, fields)) for field in fields]
