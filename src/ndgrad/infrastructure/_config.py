"""
Runtime configuration for ndgrad.

Configuration is a single `RuntimeConfig` dataclass held process-wide. It
can be built from defaults, from ``NDGRAD_*`` environment variables, or
from the ``[ndgrad]`` table of a TOML file, and swapped temporarily with
`config_override`.

Environment variables
---------------------
NDGRAD_DEFAULT_DTYPE, NDGRAD_DEFAULT_REQUIRES_GRAD, NDGRAD_MATMUL_BACKEND,
NDGRAD_MATMUL_BLOCK_SIZE, NDGRAD_LOG_EPSILON, NDGRAD_CROSS_ENTROPY_EPSILON,
NDGRAD_MATMUL_WARN_ELEMENTS
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from typing import Any, Iterator, Mapping

from ..domain._dtype import DType

logger = logging.getLogger(__name__)

MATMUL_BACKENDS = ("block", "numpy")

_ENV_PREFIX = "NDGRAD_"


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Cannot interpret {raw!r} as a boolean")


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Process-wide runtime settings.

    Attributes
    ----------
    default_dtype : str
        Dtype name used by float factories when no dtype is given.
    default_requires_grad : bool
        Initial grad mode of every thread; new leaves default to it.
    matmul_backend : str
        ``"block"`` for the recursive block kernel or ``"numpy"`` for
        ``np.matmul``.
    matmul_block_size : int
        Extent at or below which the block kernel stops recursing.
    log_epsilon : float
        Lower clamp applied to the input of the Log backward rule.
    cross_entropy_epsilon : float
        Probability clip used by the cross-entropy loss.
    matmul_warn_elements : int
        Output size above which the block kernel emits a performance warning.
    """

    default_dtype: str = "float64"
    default_requires_grad: bool = True
    matmul_backend: str = "block"
    matmul_block_size: int = 32
    log_epsilon: float = 1e-7
    cross_entropy_epsilon: float = 1e-7
    matmul_warn_elements: int = 1_000_000

    def __post_init__(self) -> None:
        """Validate field values."""
        DType.from_name(self.default_dtype)
        if self.matmul_backend not in MATMUL_BACKENDS:
            raise ValueError(
                f"matmul_backend must be one of {MATMUL_BACKENDS}, "
                f"got {self.matmul_backend!r}"
            )
        if self.matmul_block_size < 1:
            raise ValueError(
                f"matmul_block_size must be >= 1, got {self.matmul_block_size}"
            )
        if self.log_epsilon <= 0 or self.cross_entropy_epsilon <= 0:
            raise ValueError("epsilon values must be positive")
        if not 0 < self.cross_entropy_epsilon < 0.5:
            raise ValueError("cross_entropy_epsilon must be in (0, 0.5)")

    @property
    def dtype(self) -> DType:
        return DType.from_name(self.default_dtype)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RuntimeConfig":
        """
        Build a configuration from a mapping, ignoring unknown keys.

        Values are coerced to the field's declared type.
        """
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, raw in values.items():
            if key not in known:
                logger.debug("Ignoring unknown configuration key %r", key)
                continue
            default = known[key].default
            if isinstance(default, bool):
                kwargs[key] = _parse_bool(raw) if isinstance(raw, str) else bool(raw)
            elif isinstance(default, int):
                kwargs[key] = int(raw)
            elif isinstance(default, float):
                kwargs[key] = float(raw)
            else:
                kwargs[key] = str(raw)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RuntimeConfig":
        """
        Build a configuration from ``NDGRAD_*`` environment variables.

        Parameters
        ----------
        environ : Mapping[str, str], optional
            Environment to read. Defaults to `os.environ`.
        """
        env = os.environ if environ is None else environ
        values = {
            f.name: env[_ENV_PREFIX + f.name.upper()]
            for f in fields(cls)
            if _ENV_PREFIX + f.name.upper() in env
        }
        return cls.from_mapping(values)

    @classmethod
    def load(cls, config_path: str) -> "RuntimeConfig":
        """
        Load the ``[ndgrad]`` table of a TOML file.

        Parameters
        ----------
        config_path : str
            Path to the TOML file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        cfg = cls.from_mapping(data.get("ndgrad", {}))
        logger.debug("Loaded configuration from %s: %r", config_path, cfg)
        return cfg


_lock = threading.Lock()
_current: RuntimeConfig = RuntimeConfig.from_env()


def get_config() -> RuntimeConfig:
    """Return the active configuration."""
    return _current


def set_config(config: RuntimeConfig) -> RuntimeConfig:
    """
    Replace the active configuration.

    Returns
    -------
    RuntimeConfig
        The previously active configuration.
    """
    global _current
    with _lock:
        previous = _current
        _current = config
    logger.debug("Configuration set to %r", config)
    return previous


@contextmanager
def config_override(**changes: Any) -> Iterator[RuntimeConfig]:
    """
    Temporarily replace selected configuration fields.

    Examples
    --------
    >>> with config_override(matmul_backend="numpy"):
    ...     ...
    """
    previous = set_config(replace(get_config(), **changes))
    try:
        yield get_config()
    finally:
        set_config(previous)
