import logging

import numpy as np
from numpy.lib.stride_tricks import as_strided


logger = logging.getLogger(__name__)


class DimensionMismatchError(ValueError):
    pass


class Kernel:
    def __init__(self, weights):
        self.weights = np.asarray(weights, dtype=np.float64)

    def __repr__(self):
        return f"Kernel(shape={self.weights.shape})"


class Filter:
    def __init__(self, id, kernels, bias=0.0, color=None):
        self.id = id
        self.kernels = list(kernels)
        self.bias = float(bias)
        self.color = color

    def __repr__(self):
        return f"Filter(id={self.id!r}, kernels={len(self.kernels)}, bias={self.bias})"


class LayerOutput:
    """Result of one filter: the feature map plus one partial sum per channel.

    ``error`` is None on success. When the filter does not match the input
    channel count it holds the reason and both matrices are empty.
    """

    def __init__(self, final, intermediates, error=None):
        self.final = final
        self.intermediates = intermediates
        self.error = error

    @property
    def ok(self):
        return self.error is None

    def __repr__(self):
        shape = get_dimensions(self.final)
        return f"LayerOutput(final={shape}, intermediates={len(self.intermediates)}, error={self.error!r})"


def _empty():
    return np.zeros((0, 0), dtype=np.float64)


def _as_matrix(matrix):
    m = np.asarray(matrix, dtype=np.float64)
    if m.size == 0:
        return _empty()
    if m.ndim != 2:
        raise ValueError(f"expected a 2D matrix, got shape {m.shape}")
    return m


def _round(x, decimals):
    # adding 0.0 folds -0.0 into 0.0
    return np.round(x, decimals) + 0.0


def create_matrix(rows, cols, initial_value=0):
    rows, cols = max(int(rows), 0), max(int(cols), 0)
    if rows == 0 or cols == 0:
        return _empty()
    return np.full((rows, cols), initial_value, dtype=np.float64)


def random_matrix(rows, cols, low=-1.0, high=1.0, rng=None):
    rows, cols = max(int(rows), 0), max(int(cols), 0)
    if rows == 0 or cols == 0:
        return _empty()
    if rng is None:
        rng = np.random.default_rng()
    return _round(rng.uniform(low, high, size=(rows, cols)), 2)


def get_dimensions(matrix):
    m = np.asarray(matrix)
    if m.size == 0 and (m.ndim < 2 or m.shape[0] == 0 or m.shape[1] == 0):
        return 0, 0
    return m.shape[0], m.shape[1]


def pad_matrix(matrix, padding):
    m = _as_matrix(matrix)
    padding = int(padding)
    if padding <= 0:
        return m
    return np.pad(m, ((padding, padding), (padding, padding)), mode='constant')


def output_size(size, kernel_size, stride=1, padding=0):
    stride = max(int(stride), 1)
    return (size + 2 * padding - kernel_size) // stride + 1


def _windows(x, kh, kw, stride):
    x = np.ascontiguousarray(x)
    out_h = (x.shape[0] - kh) // stride + 1
    out_w = (x.shape[1] - kw) // stride + 1
    shape = (out_h, out_w, kh, kw)
    strides = (
        x.strides[0] * stride,
        x.strides[1] * stride,
        x.strides[0],
        x.strides[1],
    )
    return as_strided(x, shape=shape, strides=strides, writeable=False)


def convolve2d(matrix, kernel, stride=1):
    x = _as_matrix(matrix)
    k = _as_matrix(kernel)
    stride = max(int(stride), 1)
    h_in, w_in = get_dimensions(x)
    h_k, w_k = get_dimensions(k)

    # kernel bigger than input (or nothing to slide) means no output
    if h_k == 0 or h_in == 0 or h_k > h_in or w_k > w_in:
        return _empty()

    windows = _windows(x, h_k, w_k, stride)
    out = np.tensordot(windows, k, axes=((2, 3), (0, 1)))
    return _round(out, 3)


def add_matrices(m1, m2):
    a = _as_matrix(m1)
    b = _as_matrix(m2)
    if get_dimensions(a) != get_dimensions(b):
        raise DimensionMismatchError(
            f"Matrix dimensions mismatch in add: {get_dimensions(a)} vs {get_dimensions(b)}"
        )
    return _round(a + b, 3)


def compute_conv_layer(inputs, filters, stride=1, padding=0):
    padded_inputs = [pad_matrix(m, padding) for m in inputs]

    outputs = []
    for f in filters:
        # one kernel per input channel
        if len(f.kernels) != len(padded_inputs):
            message = (f"Filter {f.id} has {len(f.kernels)} kernels "
                       f"but the input has {len(padded_inputs)} channels")
            logger.warning(message)
            outputs.append(LayerOutput(_empty(), [], error=message))
            continue

        partials = [convolve2d(x, kernel.weights, stride)
                    for x, kernel in zip(padded_inputs, f.kernels)]
        if not partials:
            outputs.append(LayerOutput(_empty(), []))
            continue

        total = partials[0].copy()
        for partial in partials[1:]:
            total = add_matrices(total, partial)

        if f.bias != 0:
            total = _round(total + f.bias, 3)

        outputs.append(LayerOutput(total, partials))
    return outputs
