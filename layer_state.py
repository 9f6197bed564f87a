"""Layer configuration and the data derived from it.

``ConvLayerModel`` owns the generated input channels and filters. Any change
to a structural hyperparameter regenerates both; stride and padding only
change the derived outputs.
"""
import logging
import os

import numpy as np

from numpy_conv import Filter, Kernel, compute_conv_layer, random_matrix


logger = logging.getLogger(__name__)

CONFIG_KEY = 'cnn_config'
CONFIG_PATH = 'cnn_config.npz'

FIELDS = (
    'input_height',
    'input_width',
    'input_channels',
    'num_filters',
    'kernel_size',
    'stride',
    'padding',
    'sparsity',
)

DEFAULT_CONFIG = {
    'input_height': 5,
    'input_width': 5,
    'input_channels': 3,
    'num_filters': 2,
    'kernel_size': 3,
    'stride': 1,
    'padding': 0,
    'sparsity': 0,
}

LIMITS = {
    'input_height': (3, 15),
    'input_width': (3, 15),
    'input_channels': (1, 5),
    'num_filters': (1, 6),
    'kernel_size': (1, 7),
    'stride': (1, 3),
    'padding': (0, 5),
    'sparsity': (0, 99),
}

KERNEL_SIZES = (1, 3, 5, 7)

STRUCTURAL_FIELDS = (
    'input_height',
    'input_width',
    'input_channels',
    'num_filters',
    'kernel_size',
    'sparsity',
)

INPUT_RANGE = (0, 9)
WEIGHT_RANGE = (-1, 1)

FILTER_COLORS = ['#4A90E2', '#50C878', '#E94B3C', '#F5A623', '#9B59B6', '#8E44AD']


def _coerce(name, value):
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Invalid value {value!r} for {name}, using default {DEFAULT_CONFIG[name]}")
        number = DEFAULT_CONFIG[name]

    low, high = LIMITS[name]
    number = min(max(number, low), high)
    if name == 'kernel_size':
        # nearest allowed size, ties go to the smaller one
        number = min(KERNEL_SIZES, key=lambda k: (abs(k - number), k))
    return number


class LayerConfig:
    def __init__(self, input_height=5, input_width=5, input_channels=3, num_filters=2,
                 kernel_size=3, stride=1, padding=0, sparsity=0):
        self.input_height = _coerce('input_height', input_height)
        self.input_width = _coerce('input_width', input_width)
        self.input_channels = _coerce('input_channels', input_channels)
        self.num_filters = _coerce('num_filters', num_filters)
        self.kernel_size = _coerce('kernel_size', kernel_size)
        self.stride = _coerce('stride', stride)
        self.padding = _coerce('padding', padding)
        self.sparsity = _coerce('sparsity', sparsity)

    @classmethod
    def from_dict(cls, values):
        values = values or {}
        return cls(**{name: values.get(name, DEFAULT_CONFIG[name]) for name in FIELDS})

    def to_dict(self):
        return {name: getattr(self, name) for name in FIELDS}

    def merged(self, changes):
        values = self.to_dict()
        values.update({k: v for k, v in changes.items() if k in values})
        return LayerConfig.from_dict(values)

    def __eq__(self, other):
        if not isinstance(other, LayerConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        args = ', '.join(f"{k}={v}" for k, v in self.to_dict().items())
        return f"LayerConfig({args})"


def sparsify(weights, sparsity, rng=None):
    """Zero each weight independently with probability ``sparsity / 100``."""
    if rng is None:
        rng = np.random.default_rng()
    weights = np.array(weights, dtype=np.float64)
    if sparsity <= 0 or weights.size == 0:
        return weights
    mask = rng.random(weights.shape) * 100 < sparsity
    weights[mask] = 0.0
    return weights


def generate_inputs(config, rng=None):
    low, high = INPUT_RANGE
    return [random_matrix(config.input_height, config.input_width, low, high, rng=rng)
            for _ in range(config.input_channels)]


def generate_filters(config, rng=None):
    low, high = WEIGHT_RANGE
    size = config.kernel_size
    filters = []
    for i in range(config.num_filters):
        kernels = []
        for _ in range(config.input_channels):
            weights = random_matrix(size, size, low, high, rng=rng)
            kernels.append(Kernel(sparsify(weights, config.sparsity, rng=rng)))
        filters.append(Filter(f"f-{i}", kernels, bias=0.0, color=FILTER_COLORS[i % len(FILTER_COLORS)]))
    return filters


class ConvLayerModel:
    def __init__(self, config=None, rng=None, seed=None):
        if not isinstance(config, LayerConfig):
            config = LayerConfig.from_dict(config)
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.inputs = []
        self.filters = []
        self.generation = 0
        self._outputs = None
        self._outputs_key = None
        self.regenerate()

    def regenerate(self, config=None):
        """Draw new inputs and filters, committing ``config`` only once both exist."""
        if config is None:
            config = self.config
        inputs = generate_inputs(config, self.rng)
        filters = generate_filters(config, self.rng)
        # swap everything at once so inputs and filters always share a generation
        self.config, self.inputs, self.filters = config, inputs, filters
        self.generation += 1
        self._outputs = None
        self._outputs_key = None
        logger.debug(f"Regenerated generation {self.generation}: {len(inputs)} channels, {len(filters)} filters")

    def update_config(self, **changes):
        """Merge ``changes`` into the config; returns True if data was regenerated."""
        new_config = self.config.merged(changes)
        structural = any(getattr(new_config, name) != getattr(self.config, name)
                         for name in STRUCTURAL_FIELDS)
        if structural:
            self.regenerate(new_config)
        else:
            self.config = new_config
        return structural

    def _cache_hit(self):
        if self._outputs is None or self._outputs_key is None:
            return False
        inputs, filters, stride, padding = self._outputs_key
        return (inputs is self.inputs and filters is self.filters
                and stride == self.config.stride and padding == self.config.padding)

    @property
    def outputs(self):
        # keyed on the identity of inputs/filters so reassigning either drops the cache
        if not self._cache_hit():
            if not self.inputs or not self.filters:
                self._outputs = []
            else:
                self._outputs = compute_conv_layer(self.inputs, self.filters,
                                                   self.config.stride, self.config.padding)
            self._outputs_key = (self.inputs, self.filters, self.config.stride, self.config.padding)
        return self._outputs


def save_config(config, filepath=CONFIG_PATH):
    values = config.to_dict()
    np.savez(filepath, **{CONFIG_KEY: np.array([values[name] for name in FIELDS], dtype=np.int64)})


def load_config(filepath=CONFIG_PATH):
    if not os.path.exists(filepath):
        return LayerConfig()
    with np.load(filepath) as data:
        if CONFIG_KEY not in data:
            logger.warning(f"{filepath} has no '{CONFIG_KEY}' entry, using defaults")
            return LayerConfig()
        stored = data[CONFIG_KEY].tolist()
    return LayerConfig.from_dict(dict(zip(FIELDS, stored)))
