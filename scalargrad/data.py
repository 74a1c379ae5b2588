"""
Reader for the IDX labeled-image format used by MNIST.

Both files start with big-endian 32-bit header fields: a magic number and an
item count, plus the row and column counts for image files. The payload is
one unsigned byte per label or per pixel.
"""
import struct

import numpy as np

LABELS_MAGIC = 2049
IMAGES_MAGIC = 2051
NUM_DIGITS = 10


class Image:
    __slots__ = ("label", "pixels", "width", "height")

    def __init__(self, label, pixels, width, height):
        assert len(pixels) == width * height, f"{len(pixels)} pixels for {width}x{height}"
        self.label = label
        self.pixels = pixels
        self.width = width
        self.height = height

    def render(self):
        rows = []
        for row in range(self.height):
            line = self.pixels[row*self.width:(row+1)*self.width]
            rows.append(''.join('0' if p > 123 else ' ' for p in line))
        rows.append(f"Label {self.label}")
        return "\n".join(rows)

    def __repr__(self):
        return f"Image(label={self.label}, {self.width}x{self.height})"


def _header(raw, magic, nfields):
    size = 4 * nfields
    if len(raw) < size:
        raise ValueError(f"truncated header: {len(raw)} bytes")
    fields = struct.unpack(f">{nfields}I", raw[:size])
    if fields[0] != magic:
        raise ValueError(f"bad magic {fields[0]}, expected {magic}")
    return fields[1:], raw[size:]


def parse_labels(raw):
    (count,), body = _header(raw, LABELS_MAGIC, 2)
    if len(body) < count:
        raise ValueError(f"expected {count} labels, found {len(body)}")
    return np.frombuffer(body, dtype=np.uint8, count=count)


def parse_images(raw):
    (count, height, width), body = _header(raw, IMAGES_MAGIC, 4)
    n = height * width
    if len(body) < count * n:
        raise ValueError(f"expected {count} images of {n} pixels, found {len(body)} bytes")
    pixels = np.frombuffer(body, dtype=np.uint8, count=count * n).reshape(count, n)
    return pixels, width, height


def read_labels(path):
    with open(path, "rb") as f:
        return parse_labels(f.read())


def read_images(path):
    with open(path, "rb") as f:
        return parse_images(f.read())


def load(images_path, labels_path):
    pixels, width, height = read_images(images_path)
    labels = read_labels(labels_path)
    if len(pixels) != len(labels):
        raise ValueError(f"{len(pixels)} images but {len(labels)} labels")
    return [Image(int(label), row, width, height) for label, row in zip(labels, pixels)]


def one_hot(label, n=NUM_DIGITS):
    assert 0 <= label < n, f"label {label} out of range for {n} classes"
    out = [0.0] * n
    out[label] = 1.0
    return out


def to_floats(pixels, scale=255.0):
    return (np.asarray(pixels, dtype=np.float64) / scale).tolist()
