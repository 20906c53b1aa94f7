"""Imaging module for fpenroll

This module contains the numpy/OpenCV side of raw samples:
- Image loading and saving
- Standardization (undo sensor flips and colour inversion)
- ImageSequenceCapture: replays recorded swipes as a capture service

"""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Optional, Union
import cv2
import numpy as np

from fpenroll.config import IMAGE_EXTENSIONS
from fpenroll.errors import CaptureError
from fpenroll.models import ImageFlag, RawSample


FrameSource = Union[str, Path, np.ndarray]


def load_grayscale_image(path: Path) -> np.ndarray:
    """Load a frame as grayscale uint8.

    Args:
        path: Path to the image file

    Returns:
        Grayscale image (uint8, height x width)

    Raises:
        FileNotFoundError: If the image cannot be loaded
    """
    image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise FileNotFoundError(f"Unable to read fingerprint image: {path}")
    return image


def as_grayscale(frame: np.ndarray) -> np.ndarray:
    """Convert a frame to 2-D uint8 grayscale."""
    array = np.asarray(frame)
    if array.dtype != np.uint8:
        array = np.clip(array, 0, 255).astype(np.uint8)
    if array.ndim == 3:
        if array.shape[2] == 4:
            array = cv2.cvtColor(array, cv2.COLOR_BGRA2GRAY)
        else:
            array = cv2.cvtColor(array, cv2.COLOR_BGR2GRAY)
    return array


def standardize_image(sample: RawSample) -> None:
    """Bring a sample to canonical orientation and polarity, in place.

    Vertical flip, horizontal flip and colour inversion are applied according
    to the sample's flags, which are then cleared. Running it twice is a no-op.

    Args:
        sample: Sample to standardize
    """
    if sample.data is None:
        return

    image = sample.data
    if sample.flags & ImageFlag.V_FLIPPED:
        image = cv2.flip(image, 0)
    if sample.flags & ImageFlag.H_FLIPPED:
        image = cv2.flip(image, 1)
    if sample.flags & ImageFlag.COLORS_INVERTED:
        image = cv2.bitwise_not(image)

    sample.data = np.ascontiguousarray(image)
    sample.flags = ImageFlag.NONE
    sample.standardized = True


def save_image(sample: RawSample, path: Path) -> Path:
    """Write a sample frame to ``path``.

    Raises:
        ValueError: If the sample holds no frame
        OSError: If OpenCV cannot write the file
    """
    if sample.data is None:
        raise ValueError("Sample has no image data")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), sample.data):
        raise OSError(f"Unable to write image: {path}")
    return path


def list_images(directory: Path) -> List[Path]:
    """Image files in ``directory`` sorted by name."""
    return sorted(p for p in Path(directory).iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS)


# ---------------------------------------------------------------------------
# ImageSequenceCapture


class ImageSequenceCapture:
    """Capture service replaying recorded frames, one per swipe.

    Each call to ``capture`` consumes the next source. Unreadable, empty or
    exhausted sources raise ``CaptureError`` like a failed swipe would.

    Attributes:
        flags: Flags attached to every produced sample (how the sensor mounts)
        captured: Number of sources consumed so far
    """

    def __init__(self, sources: Iterable[FrameSource], flags: ImageFlag = ImageFlag.NONE) -> None:
        self._sources = list(sources)
        self.flags = flags
        self.captured = 0

    @classmethod
    def from_directory(cls, directory: Path, flags: ImageFlag = ImageFlag.NONE) -> "ImageSequenceCapture":
        return cls(list_images(directory), flags=flags)

    @property
    def remaining(self) -> int:
        return len(self._sources) - self.captured

    def capture(self, is_first_attempt: bool) -> RawSample:
        if self.remaining <= 0:
            raise CaptureError("No more frames available")

        source = self._sources[self.captured]
        self.captured += 1
        label: Optional[str] = None

        if isinstance(source, np.ndarray):
            frame = as_grayscale(source)
        else:
            label = Path(source).name
            try:
                frame = load_grayscale_image(Path(source))
            except FileNotFoundError as e:
                raise CaptureError(str(e)) from e

        if frame.size == 0:
            raise CaptureError(f"Zero image size ({label or 'array'})")

        return RawSample(data=frame.copy(), flags=self.flags, source=label)

    def standardize(self, sample: RawSample) -> None:
        standardize_image(sample)
