import typing as t
from io import BytesIO

from PIL import Image

IMAGE_FORMAT_EXTENSIONS: dict[str, str] = {"JPEG": "jpg", "PNG": "png", "WEBP": "webp"}


class SanitizedImage(t.NamedTuple):
    data: bytes
    format: str

    @property
    def extension(self) -> str:
        return IMAGE_FORMAT_EXTENSIONS.get(self.format, self.format.lower())


def strip_exif(data: bytes) -> SanitizedImage:
    """Re-encode an image from its raw pixels, dropping EXIF and other metadata.

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not an image Pillow can read.
    """
    image = Image.open(BytesIO(data))
    _format = image.format or "JPEG"
    image_no_exif = Image.frombytes(image.mode, image.size, image.tobytes())
    if image.mode == "P" and (palette := image.getpalette()):
        image_no_exif.putpalette(palette)

    output = BytesIO()
    image_no_exif.save(output, format=_format)
    return SanitizedImage(data=output.getvalue(), format=_format)


def assert_image_equal(actual_bytes: bytes, expected_bytes: bytes) -> None:
    """Assert that two images are visually identical by comparing pixel data."""
    img1 = Image.open(BytesIO(actual_bytes)).convert("RGB")
    img2 = Image.open(BytesIO(expected_bytes)).convert("RGB")

    assert img1.size == img2.size, f"Image size mismatch: {img1.size} vs {img2.size}"
    assert img1.tobytes() == img2.tobytes(), "Image pixel data mismatch"
