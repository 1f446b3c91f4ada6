"""EXIF metadata extraction.

Every field of the metadata document is described by one row of
``EXIF_FIELDS``: the EXIF tag it is read from and the converter that turns the
raw Pillow value into a JSON friendly one. A field whose tag is missing or
cannot be converted is logged and left as ``None``.
"""

import logging
import numbers
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from PIL import Image
from PIL.ExifTags import IFD

from storage_trigger.config import StorageTriggerError

logger = logging.getLogger(__name__)

# Pillow keeps the primary image directory on the Exif object itself
IFD0 = 0

EXIF_DATETIME_FORMAT = '%Y:%m:%d %H:%M:%S'

UNICODE_CODE = b'UNICODE\x00'

# Character code prefixes of UserComment-like UNDEFINED values
CHARACTER_CODES = {
    b'ASCII\x00\x00\x00': 'ascii',
    b'JIS\x00\x00\x00\x00\x00': 'shift_jis',
    b'\x00' * 8: 'utf-8',
}

# UNICODE text follows the byte order of the TIFF header
UNICODE_ENCODINGS = {
    '<': 'utf-16-le',
    '>': 'utf-16-be',
}


class ExifNotFoundError(StorageTriggerError, ValueError):
    """Raised when an image carries no EXIF data at all."""


class TagNotPresentError(StorageTriggerError, KeyError):
    """Raised when a tag is not present in the image."""

    def __str__(self):
        return f"tag {self.args[0]} is not present"


# Tag name -> (directory, tag id)
EXIF_TAGS: Dict[str, Tuple[int, int]] = {
    # Primary image directory
    'ImageWidth': (IFD0, 0x0100),
    'ImageLength': (IFD0, 0x0101),
    'BitsPerSample': (IFD0, 0x0102),
    'Compression': (IFD0, 0x0103),
    'PhotometricInterpretation': (IFD0, 0x0106),
    'ImageDescription': (IFD0, 0x010E),
    'Make': (IFD0, 0x010F),
    'Model': (IFD0, 0x0110),
    'Orientation': (IFD0, 0x0112),
    'SamplesPerPixel': (IFD0, 0x0115),
    'XResolution': (IFD0, 0x011A),
    'YResolution': (IFD0, 0x011B),
    'PlanarConfiguration': (IFD0, 0x011C),
    'ResolutionUnit': (IFD0, 0x0128),
    'Software': (IFD0, 0x0131),
    'DateTime': (IFD0, 0x0132),
    'Artist': (IFD0, 0x013B),
    'YCbCrSubSampling': (IFD0, 0x0212),
    'YCbCrPositioning': (IFD0, 0x0213),
    'Copyright': (IFD0, 0x8298),
    'ExifIFDPointer': (IFD0, IFD.Exif),
    'GPSInfoIFDPointer': (IFD0, IFD.GPSInfo),
    'XPTitle': (IFD0, 0x9C9B),
    'XPComment': (IFD0, 0x9C9C),
    'XPAuthor': (IFD0, 0x9C9D),
    'XPKeywords': (IFD0, 0x9C9E),
    'XPSubject': (IFD0, 0x9C9F),
    # Thumbnail directory
    'ThumbJPEGInterchangeFormat': (IFD.IFD1, 0x0201),
    'ThumbJPEGInterchangeFormatLength': (IFD.IFD1, 0x0202),
    # Exif sub-directory
    'ExposureTime': (IFD.Exif, 0x829A),
    'FNumber': (IFD.Exif, 0x829D),
    'ExposureProgram': (IFD.Exif, 0x8822),
    'SpectralSensitivity': (IFD.Exif, 0x8824),
    'ISOSpeedRatings': (IFD.Exif, 0x8827),
    'OECF': (IFD.Exif, 0x8828),
    'ExifVersion': (IFD.Exif, 0x9000),
    'DateTimeOriginal': (IFD.Exif, 0x9003),
    'DateTimeDigitized': (IFD.Exif, 0x9004),
    'ComponentsConfiguration': (IFD.Exif, 0x9101),
    'CompressedBitsPerPixel': (IFD.Exif, 0x9102),
    'ShutterSpeedValue': (IFD.Exif, 0x9201),
    'ApertureValue': (IFD.Exif, 0x9202),
    'BrightnessValue': (IFD.Exif, 0x9203),
    'ExposureBiasValue': (IFD.Exif, 0x9204),
    'MaxApertureValue': (IFD.Exif, 0x9205),
    'SubjectDistance': (IFD.Exif, 0x9206),
    'MeteringMode': (IFD.Exif, 0x9207),
    'LightSource': (IFD.Exif, 0x9208),
    'Flash': (IFD.Exif, 0x9209),
    'FocalLength': (IFD.Exif, 0x920A),
    'SubjectArea': (IFD.Exif, 0x9214),
    'MakerNote': (IFD.Exif, 0x927C),
    'UserComment': (IFD.Exif, 0x9286),
    'SubSecTime': (IFD.Exif, 0x9290),
    'SubSecTimeOriginal': (IFD.Exif, 0x9291),
    'SubSecTimeDigitized': (IFD.Exif, 0x9292),
    'FlashpixVersion': (IFD.Exif, 0xA000),
    'ColorSpace': (IFD.Exif, 0xA001),
    'PixelXDimension': (IFD.Exif, 0xA002),
    'PixelYDimension': (IFD.Exif, 0xA003),
    'RelatedSoundFile': (IFD.Exif, 0xA004),
    'InteroperabilityIFDPointer': (IFD.Exif, IFD.Interop),
    'FlashEnergy': (IFD.Exif, 0xA20B),
    'SpatialFrequencyResponse': (IFD.Exif, 0xA20C),
    'FocalPlaneXResolution': (IFD.Exif, 0xA20E),
    'FocalPlaneYResolution': (IFD.Exif, 0xA20F),
    'FocalPlaneResolutionUnit': (IFD.Exif, 0xA210),
    'SubjectLocation': (IFD.Exif, 0xA214),
    'ExposureIndex': (IFD.Exif, 0xA215),
    'SensingMethod': (IFD.Exif, 0xA217),
    'FileSource': (IFD.Exif, 0xA300),
    'SceneType': (IFD.Exif, 0xA301),
    'CFAPattern': (IFD.Exif, 0xA302),
    'CustomRendered': (IFD.Exif, 0xA401),
    'ExposureMode': (IFD.Exif, 0xA402),
    'WhiteBalance': (IFD.Exif, 0xA403),
    'DigitalZoomRatio': (IFD.Exif, 0xA404),
    'FocalLengthIn35mmFilm': (IFD.Exif, 0xA405),
    'SceneCaptureType': (IFD.Exif, 0xA406),
    'GainControl': (IFD.Exif, 0xA407),
    'Contrast': (IFD.Exif, 0xA408),
    'Saturation': (IFD.Exif, 0xA409),
    'Sharpness': (IFD.Exif, 0xA40A),
    'DeviceSettingDescription': (IFD.Exif, 0xA40B),
    'SubjectDistanceRange': (IFD.Exif, 0xA40C),
    'ImageUniqueID': (IFD.Exif, 0xA420),
    'LensMake': (IFD.Exif, 0xA433),
    'LensModel': (IFD.Exif, 0xA434),
    # GPS sub-directory
    'GPSVersionID': (IFD.GPSInfo, 0x00),
    'GPSLatitudeRef': (IFD.GPSInfo, 0x01),
    'GPSLatitude': (IFD.GPSInfo, 0x02),
    'GPSLongitudeRef': (IFD.GPSInfo, 0x03),
    'GPSLongitude': (IFD.GPSInfo, 0x04),
    'GPSAltitudeRef': (IFD.GPSInfo, 0x05),
    'GPSAltitude': (IFD.GPSInfo, 0x06),
    'GPSTimeStamp': (IFD.GPSInfo, 0x07),
    'GPSSatelites': (IFD.GPSInfo, 0x08),
    'GPSStatus': (IFD.GPSInfo, 0x09),
    'GPSMeasureMode': (IFD.GPSInfo, 0x0A),
    'GPSDOP': (IFD.GPSInfo, 0x0B),
    'GPSSpeedRef': (IFD.GPSInfo, 0x0C),
    'GPSSpeed': (IFD.GPSInfo, 0x0D),
    'GPSTrackRef': (IFD.GPSInfo, 0x0E),
    'GPSTrack': (IFD.GPSInfo, 0x0F),
    'GPSImgDirectionRef': (IFD.GPSInfo, 0x10),
    'GPSImgDirection': (IFD.GPSInfo, 0x11),
    'GPSMapDatum': (IFD.GPSInfo, 0x12),
    'GPSDestLatitudeRef': (IFD.GPSInfo, 0x13),
    'GPSDestLatitude': (IFD.GPSInfo, 0x14),
    'GPSDestLongitudeRef': (IFD.GPSInfo, 0x15),
    'GPSDestLongitude': (IFD.GPSInfo, 0x16),
    'GPSDestBearingRef': (IFD.GPSInfo, 0x17),
    'GPSDestBearing': (IFD.GPSInfo, 0x18),
    'GPSDestDistanceRef': (IFD.GPSInfo, 0x19),
    'GPSDestDistance': (IFD.GPSInfo, 0x1A),
    'GPSProcessingMethod': (IFD.GPSInfo, 0x1B),
    'GPSAreaInformation': (IFD.GPSInfo, 0x1C),
    'GPSDateStamp': (IFD.GPSInfo, 0x1D),
    'GPSDifferential': (IFD.GPSInfo, 0x1E),
    # Interoperability sub-directory
    'InteroperabilityIndex': (IFD.Interop, 0x0001),
}


def is_rational(value: Any) -> bool:
    return isinstance(value, numbers.Rational) and not isinstance(value, numbers.Integral)


def decode_bytes(value: bytes, byte_order: str = '<') -> str:
    """Decode an UNDEFINED/BYTE value into text."""
    prefix = value[:8]
    if prefix == UNICODE_CODE:
        encoding = UNICODE_ENCODINGS.get(byte_order, 'utf-16-le')
    else:
        encoding = CHARACTER_CODES.get(prefix)
    if encoding:
        text = value[8:].decode(encoding, errors='replace')
        return text.lstrip('\ufeff').rstrip('\x00').strip()

    text = value.rstrip(b'\x00')
    try:
        decoded = text.decode('ascii')
    except UnicodeDecodeError:
        return value.hex()
    if decoded.isprintable():
        return decoded.strip()
    return value.hex()


def to_int(value: Any) -> int:
    """Integer value of a tag, using the first component of a sequence."""
    if isinstance(value, (tuple, list)):
        if not value:
            raise ValueError("empty sequence")
        value = value[0]
    if isinstance(value, bytes):
        value = decode_bytes(value)
    if isinstance(value, str):
        return int(value.strip().strip('"'))
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return int(float(value))
    raise TypeError(f"cannot convert {type(value).__name__} to int")


def to_string(value: Any) -> str:
    """String representation of a tag with surrounding quotes trimmed."""
    if isinstance(value, bytes):
        return decode_bytes(value)
    if isinstance(value, str):
        return value.rstrip('\x00').strip().strip('"')
    if is_rational(value):
        return f"{value.numerator}/{value.denominator}"
    if isinstance(value, (tuple, list)):
        return ','.join(to_string(item) for item in value)
    return str(value)


def to_text(value: Any) -> str:
    """Value of an ASCII tag; other formats are rejected."""
    if not isinstance(value, str):
        raise TypeError(f"expected an ASCII value, got {type(value).__name__}")
    return value.rstrip('\x00').strip()


def to_subsec(value: Any) -> int:
    return int(to_string(value).replace('"', ''))


def to_gps_version(value: Any) -> str:
    if isinstance(value, (str, numbers.Integral)):
        raise TypeError(f"expected a byte sequence, got {type(value).__name__}")
    return '.'.join(str(int(part)) for part in value)


def to_xp_string(value: Any) -> str:
    """Windows XP tags hold UCS-2 text."""
    if isinstance(value, (tuple, list)):
        value = bytes(value)
    if not isinstance(value, bytes):
        return to_string(value)
    return value.decode('utf-16-le', errors='replace').rstrip('\x00')


def gps_component(index: int) -> Callable[[Any], int]:
    """Converter for one component of a GPS triplet (d/m/s or h/m/s)."""
    def convert(value: Any) -> int:
        if not isinstance(value, (tuple, list)) or len(value) != 3:
            raise ValueError(f"expected three components, got {value!r}")
        return int(float(value[index]))
    return convert


def to_json_value(value: Any) -> Any:
    """Generic conversion of a tag value into something JSON can encode."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        return to_string(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if is_rational(value):
        return to_string(value)
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, bytes):
        return decode_bytes(value)
    if isinstance(value, (tuple, list)):
        return [to_json_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): to_json_value(item) for key, item in value.items()}
    return str(value)


# Field name -> (tag name, converter)
EXIF_FIELDS: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    'ApertureValue': ('ApertureValue', to_json_value),
    'Artist': ('Artist', to_json_value),
    'BitsPerSample': ('BitsPerSample', to_json_value),
    'BrightnessValue': ('BrightnessValue', to_string),
    'CFAPattern': ('CFAPattern', to_json_value),
    'ColorSpace': ('ColorSpace', to_int),
    'ComponentsConfiguration': ('ComponentsConfiguration', to_string),
    'CompressedBitsPerPixel': ('CompressedBitsPerPixel', to_string),
    'Compression': ('Compression', to_json_value),
    'Contrast': ('Contrast', to_int),
    'Copyright': ('Copyright', to_json_value),
    'CustomRendered': ('CustomRendered', to_int),
    'DateTime': ('DateTime', to_text),
    'DateTimeDigitized': ('DateTimeDigitized', to_text),
    'DateTimeOriginal': ('DateTimeOriginal', to_text),
    'DeviceSettingDescription': ('DeviceSettingDescription', to_json_value),
    'DigitalZoomRatio': ('DigitalZoomRatio', to_string),
    'ExifIFDPointer': ('ExifIFDPointer', to_int),
    'ExifVersion': ('ExifVersion', to_string),
    'ExposureBiasValue': ('ExposureBiasValue', to_string),
    'ExposureIndex': ('ExposureIndex', to_json_value),
    'ExposureMode': ('ExposureMode', to_int),
    'ExposureProgram': ('ExposureProgram', to_int),
    'ExposureTime': ('ExposureTime', to_string),
    'FNumber': ('FNumber', to_string),
    'FileSource': ('FileSource', to_string),
    'Flash': ('Flash', to_int),
    'FlashEnergy': ('FlashEnergy', to_json_value),
    'FlashpixVersion': ('FlashpixVersion', to_string),
    'FocalLength': ('FocalLength', to_string),
    'FocalLengthIn35mmFilm': ('FocalLengthIn35mmFilm', to_int),
    'FocalPlaneResolutionUnit': ('FocalPlaneResolutionUnit', to_json_value),
    'FocalPlaneXResolution': ('FocalPlaneXResolution', to_json_value),
    'FocalPlaneYResolution': ('FocalPlaneYResolution', to_json_value),
    'GPSAltitude': ('GPSAltitude', to_json_value),
    'GPSAltitudeRef': ('GPSAltitudeRef', to_json_value),
    'GPSAreaInformation': ('GPSAreaInformation', to_json_value),
    'GPSDOP': ('GPSDOP', to_json_value),
    'GPSDateStamp': ('GPSDateStamp', to_json_value),
    'GPSDestBearing': ('GPSDestBearing', to_json_value),
    'GPSDestBearingRef': ('GPSDestBearingRef', to_json_value),
    'GPSDestDistance': ('GPSDestDistance', to_json_value),
    'GPSDestDistanceRef': ('GPSDestDistanceRef', to_json_value),
    'GPSDestLatitude': ('GPSDestLatitude', to_json_value),
    'GPSDestLatitudeRef': ('GPSDestLatitudeRef', to_json_value),
    'GPSDestLongitude': ('GPSDestLongitude', to_json_value),
    'GPSDestLongitudeRef': ('GPSDestLongitudeRef', to_json_value),
    'GPSDifferential': ('GPSDifferential', to_json_value),
    'GPSImgDirection': ('GPSImgDirection', to_json_value),
    'GPSImgDirectionRef': ('GPSImgDirectionRef', to_json_value),
    'GPSInfoIFDPointer': ('GPSInfoIFDPointer', to_json_value),
    'GPSLatitudeDegrees': ('GPSLatitude', gps_component(0)),
    'GPSLatitudeMinutes': ('GPSLatitude', gps_component(1)),
    'GPSLatitudeSeconds': ('GPSLatitude', gps_component(2)),
    'GPSLatitudeRef': ('GPSLatitudeRef', to_string),
    'GPSLongitudeDegrees': ('GPSLongitude', gps_component(0)),
    'GPSLongitudeMinutes': ('GPSLongitude', gps_component(1)),
    'GPSLongitudeSeconds': ('GPSLongitude', gps_component(2)),
    'GPSLongitudeRef': ('GPSLongitudeRef', to_string),
    'GPSMapDatum': ('GPSMapDatum', to_string),
    'GPSMeasureMode': ('GPSMeasureMode', to_int),
    'GPSProcessingMethod': ('GPSProcessingMethod', to_json_value),
    'GPSSatelites': ('GPSSatelites', to_json_value),
    'GPSSpeed': ('GPSSpeed', to_json_value),
    'GPSSpeedRef': ('GPSSpeedRef', to_json_value),
    'GPSStatus': ('GPSStatus', to_string),
    'GPSTimeStampHours': ('GPSTimeStamp', gps_component(0)),
    'GPSTimeStampMinutes': ('GPSTimeStamp', gps_component(1)),
    'GPSTimeStampSeconds': ('GPSTimeStamp', gps_component(2)),
    'GPSTrack': ('GPSTrack', to_json_value),
    'GPSTrackRef': ('GPSTrackRef', to_json_value),
    'GPSVersionID': ('GPSVersionID', to_gps_version),
    'GainControl': ('GainControl', to_json_value),
    'ISOSpeedRatings': ('ISOSpeedRatings', to_int),
    'ImageDescription': ('ImageDescription', to_json_value),
    'ImageLength': ('ImageLength', to_json_value),
    'ImageUniqueID': ('ImageUniqueID', to_json_value),
    'ImageWidth': ('ImageWidth', to_json_value),
    'InteroperabilityIFDPointer': ('InteroperabilityIFDPointer', to_int),
    'InteroperabilityIndex': ('InteroperabilityIndex', to_string),
    'LensMake': ('LensMake', to_json_value),
    'LensModel': ('LensModel', to_string),
    'LightSource': ('LightSource', to_int),
    'Make': ('Make', to_string),
    'MakerNote': ('MakerNote', to_string),
    'MaxApertureValue': ('MaxApertureValue', to_string),
    'MeteringMode': ('MeteringMode', to_int),
    'Model': ('Model', to_string),
    'OECF': ('OECF', to_json_value),
    'Orientation': ('Orientation', to_int),
    'PhotometricInterpretation': ('PhotometricInterpretation', to_json_value),
    'PixelXDimension': ('PixelXDimension', to_int),
    'PixelYDimension': ('PixelYDimension', to_int),
    'PlanarConfiguration': ('PlanarConfiguration', to_json_value),
    'RelatedSoundFile': ('RelatedSoundFile', to_json_value),
    'ResolutionUnit': ('ResolutionUnit', to_int),
    'SamplesPerPixel': ('SamplesPerPixel', to_json_value),
    'Saturation': ('Saturation', to_int),
    'SceneCaptureType': ('SceneCaptureType', to_int),
    'SceneType': ('SceneType', to_string),
    'SensingMethod': ('SensingMethod', to_json_value),
    'Sharpness': ('Sharpness', to_int),
    'ShutterSpeedValue': ('ShutterSpeedValue', to_json_value),
    'Software': ('Software', to_string),
    'SpatialFrequencyResponse': ('SpatialFrequencyResponse', to_json_value),
    'SpectralSensitivity': ('SpectralSensitivity', to_json_value),
    'SubSecTime': ('SubSecTime', to_subsec),
    'SubSecTimeDigitized': ('SubSecTimeDigitized', to_subsec),
    'SubSecTimeOriginal': ('SubSecTimeOriginal', to_subsec),
    'SubjectArea': ('SubjectArea', to_json_value),
    'SubjectDistance': ('SubjectDistance', to_json_value),
    'SubjectDistanceRange': ('SubjectDistanceRange', to_json_value),
    'SubjectLocation': ('SubjectLocation', to_json_value),
    'ThumbJPEGInterchangeFormat': ('ThumbJPEGInterchangeFormat', to_int),
    'ThumbJPEGInterchangeFormatLength': ('ThumbJPEGInterchangeFormatLength', to_int),
    'UserComment': ('UserComment', to_string),
    'WhiteBalance': ('WhiteBalance', to_int),
    'XPAuthor': ('XPAuthor', to_xp_string),
    'XPComment': ('XPComment', to_xp_string),
    'XPKeywords': ('XPKeywords', to_xp_string),
    'XPSubject': ('XPSubject', to_xp_string),
    'XPTitle': ('XPTitle', to_xp_string),
    'XResolution': ('XResolution', to_string),
    'YCbCrPositioning': ('YCbCrPositioning', to_int),
    'YCbCrSubSampling': ('YCbCrSubSampling', to_json_value),
    'YResolution': ('YResolution', to_string),
}


class ExifTagReader:
    """Raw tag values of one image, keyed by tag name.

    ``byte_order`` is the TIFF header byte order (``'<'`` or ``'>'``); it
    decides how UNICODE comments are decoded.
    """

    def __init__(self, values: Dict[str, Any], byte_order: str = '<'):
        self.values = values
        self.byte_order = byte_order

    @classmethod
    def from_image(cls, image: Image.Image) -> 'ExifTagReader':
        exif = image.getexif()
        exif_ifd = exif.get_ifd(IFD.Exif)
        directories = {
            IFD0: dict(exif),
            IFD.IFD1: exif.get_ifd(IFD.IFD1),
            IFD.Exif: exif_ifd,
            IFD.GPSInfo: exif.get_ifd(IFD.GPSInfo),
            IFD.Interop: exif.get_ifd(IFD.Interop) if IFD.Interop in exif_ifd else {},
        }
        if not any(directories.values()):
            raise ExifNotFoundError("Image has no EXIF data")

        values = {}
        for name, (directory, tag_id) in EXIF_TAGS.items():
            entries = directories.get(directory) or {}
            if tag_id in entries:
                values[name] = entries[tag_id]
        byte_order = exif.endian or '<'
        logger.info(f"ExifTagReader: Tags={len(values)} ByteOrder={byte_order}")
        return cls(values, byte_order)

    def get(self, tag: str) -> Any:
        """Return the value of a tag, with UNICODE comments already decoded."""
        if tag not in self.values:
            raise TagNotPresentError(tag)
        value = self.values[tag]
        if isinstance(value, bytes) and value.startswith(UNICODE_CODE):
            return decode_bytes(value, self.byte_order)
        return value


def extract_field(reader: ExifTagReader, field: str) -> Any:
    """Extract one metadata field; raises if its tag is absent or malformed."""
    tag, convert = EXIF_FIELDS[field]
    return convert(reader.get(tag))


class ExifMetadata:
    """The flat metadata document written next to each upload."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, Any] = {name: None for name in EXIF_FIELDS}
        if values:
            for name, value in values.items():
                if name not in self.values:
                    raise KeyError(f"Unknown EXIF field: {name}")
                self.values[name] = value

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __eq__(self, other):
        return isinstance(other, ExifMetadata) and self.values == other.values

    def present_fields(self) -> Iterable[str]:
        return [name for name, value in self.values.items() if value is not None]

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExifMetadata':
        return cls({name: data.get(name) for name in EXIF_FIELDS})

    def capture_time(self) -> Optional[datetime]:
        """When the picture was taken, if the image says so."""
        for name in ('DateTimeOriginal', 'DateTime'):
            value = self.values.get(name)
            if not value:
                continue
            try:
                return datetime.strptime(value, EXIF_DATETIME_FORMAT)
            except ValueError:
                logger.warning(f"ExifMetadata.{name}: Invalid date {value!r}")
        return None


def set_exif(metadata: ExifMetadata, reader: ExifTagReader) -> None:
    """Fill every field it can, logging the ones it cannot."""
    for name in EXIF_FIELDS:
        try:
            metadata.values[name] = extract_field(reader, name)
        except TagNotPresentError as e:
            logger.info(f"ExifMetadata.{name}: Error={str(e)}")
        except (TypeError, ValueError, IndexError, ArithmeticError) as e:
            logger.warning(f"ExifMetadata.{name}: Error={str(e)}")


def get_exif(stream) -> ExifMetadata:
    """Decode the EXIF data of an image read from a file-like object."""
    with Image.open(stream) as image:
        reader = ExifTagReader.from_image(image)

    metadata = ExifMetadata()
    set_exif(metadata, reader)
    logger.info(f"ExifMetadata: Fields={len(metadata.present_fields())}")
    return metadata


def open_exif(path: str) -> ExifMetadata:
    """Decode the EXIF data of an image file."""
    with open(path, 'rb') as file:
        return get_exif(file)
