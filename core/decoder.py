"""
Frame Decoder - turns a planar YUV 4:2:0 camera frame into an RGB image.

Conversion is done directly on the planes with OpenCV's I420 path; there is
no compressed intermediate. Row and pixel strides are honored so both fully
planar frames and semi-planar ones (interleaved chroma, pixel stride 2) decode.
"""
import cv2
import numpy as np

from core.events import Plane, RawFrame, DecodedImage
from utils.failures import DecodeFailure


def _plane_samples(plane: Plane, rows: int, cols: int, name: str) -> np.ndarray:
    """Gather a (rows, cols) uint8 array out of a strided plane buffer."""
    if len(plane) == 0:
        raise DecodeFailure(f"{name} plane is empty")

    ps, rs = plane.pixel_stride, plane.row_stride
    row_span = (cols - 1) * ps + 1
    if ps < 1 or rs < row_span:
        raise DecodeFailure(
            f"{name} plane has invalid strides (row_stride={rs}, pixel_stride={ps}) "
            f"for {cols} samples per row"
        )

    data = np.frombuffer(plane.buffer, dtype=np.uint8)
    # The last row may stop right after its final sample
    needed = (rows - 1) * rs + row_span
    if data.size < needed:
        raise DecodeFailure(f"{name} plane too small: {data.size} bytes, need {needed}")

    full = rows * rs
    if data.size < full:
        data = np.concatenate([data, np.zeros(full - data.size, dtype=np.uint8)])
    return data[:full].reshape(rows, rs)[:, :row_span:ps]


class FrameDecoder:
    """Decodes RawFrame → DecodedImage (RGB, same width/height as the frame)."""

    def __init__(self, swap_chroma: bool = False):
        """
        Args:
            swap_chroma: Treat the `u` plane as V and the `v` plane as U. Some
                         camera stacks deliver the chroma planes in V, U order.
        """
        self.swap_chroma = swap_chroma

    def decode(self, raw: RawFrame) -> DecodedImage:
        width, height = raw.width, raw.height
        if width <= 0 or height <= 0:
            raise DecodeFailure(f"Invalid frame size {width}x{height}")

        chroma_h, chroma_w = (height + 1) // 2, (width + 1) // 2

        y = _plane_samples(raw.y, height, width, "Y")
        u = _plane_samples(raw.u, chroma_h, chroma_w, "U")
        v = _plane_samples(raw.v, chroma_h, chroma_w, "V")
        if self.swap_chroma:
            u, v = v, u

        # I420 needs even dimensions; pad odd frames and crop after conversion
        even_h, even_w = chroma_h * 2, chroma_w * 2
        if (even_h, even_w) != (height, width):
            y = np.pad(y, ((0, even_h - height), (0, even_w - width)), mode="edge")

        i420 = np.concatenate([y.ravel(), u.ravel(), v.ravel()]).reshape(even_h * 3 // 2, even_w)

        try:
            rgb = cv2.cvtColor(i420, cv2.COLOR_YUV2RGB_I420)
        except cv2.error as e:
            raise DecodeFailure(f"Colorspace conversion failed: {e}") from e

        return DecodedImage(pixels=np.ascontiguousarray(rgb[:height, :width]))


def raw_frame_from_i420(buffer: np.ndarray, width: int, height: int, source: str = "unknown") -> RawFrame:
    """
    Split a contiguous I420 buffer (Y, then U, then V) into a three-plane RawFrame.

    This is how OpenCV (COLOR_BGR2YUV_I420) and Picamera2 ("YUV420") hand out
    planar frames.
    """
    chroma_h, chroma_w = (height + 1) // 2, (width + 1) // 2
    y_size, c_size = width * height, chroma_w * chroma_h

    data = np.ascontiguousarray(buffer, dtype=np.uint8).reshape(-1)
    if data.size < y_size + 2 * c_size:
        raise DecodeFailure(
            f"I420 buffer too small for {width}x{height}: {data.size} bytes"
        )

    return RawFrame(
        y=Plane(data[:y_size].tobytes(), row_stride=width),
        u=Plane(data[y_size:y_size + c_size].tobytes(), row_stride=chroma_w),
        v=Plane(data[y_size + c_size:y_size + 2 * c_size].tobytes(), row_stride=chroma_w),
        width=width,
        height=height,
        source=source,
    )
