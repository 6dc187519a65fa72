"""Build-time algorithm switches for the BSDF lobes.

The switches select which diffuse model is compiled in, which Smith masking
formula the specular lobes use, and whether half vectors are drawn from the
visible-normal distribution. They are read with ``ti.static`` when a kernel is
compiled, so changing the configuration only affects kernels compiled
afterwards.

Example:
    >>> from src.bsdf.core import config
    >>> from src.bsdf.core.config import DiffuseBrdf
    >>> with config.override_config(diffuse_brdf=DiffuseBrdf.LAMBERT):
    ...     pass  # kernels compiled here use the Lambertian diffuse lobe
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)


class DiffuseBrdf(IntEnum):
    """Diffuse reflection model used by the composite material."""

    LAMBERT = 0
    DISNEY = 1
    FROSTBITE = 2


class SpecularMasking(IntEnum):
    """Smith masking-shadowing formula used by the microfacet lobes."""

    SMITH_GGX_SEPARABLE = 0
    SMITH_GGX_CORRELATED = 1


@dataclass(frozen=True)
class BSDFConfig:
    """Compile-time configuration of the BSDF lobes.

    Attributes:
        diffuse_brdf: Diffuse model selected for the diffuse reflection lobe.
        specular_masking: Masking-shadowing formula for the specular lobes.
        enable_vndf_sampling: Draw half vectors from the distribution of
            visible normals instead of the plain normal distribution.
    """

    diffuse_brdf: DiffuseBrdf = DiffuseBrdf.FROSTBITE
    specular_masking: SpecularMasking = SpecularMasking.SMITH_GGX_SEPARABLE
    enable_vndf_sampling: bool = False

    def __post_init__(self) -> None:
        # Coerce plain ints so the config stays hashable and comparable.
        try:
            object.__setattr__(self, "diffuse_brdf", DiffuseBrdf(self.diffuse_brdf))
        except ValueError as e:
            raise ValueError(f"Unknown diffuse BRDF: {self.diffuse_brdf!r}") from e
        try:
            object.__setattr__(
                self, "specular_masking", SpecularMasking(self.specular_masking)
            )
        except ValueError as e:
            raise ValueError(f"Unknown specular masking: {self.specular_masking!r}") from e
        object.__setattr__(self, "enable_vndf_sampling", bool(self.enable_vndf_sampling))


DEFAULT_CONFIG = BSDFConfig()

# Active configuration, read by ti.static() branches at kernel compile time.
current = DEFAULT_CONFIG


def get_config() -> BSDFConfig:
    """Get the active configuration."""
    return current


def set_config(config: BSDFConfig) -> None:
    """Replace the active configuration.

    Kernels that have already been compiled keep the configuration they were
    compiled with.

    Args:
        config: The new configuration.

    Raises:
        TypeError: If config is not a BSDFConfig.
    """
    global current

    if not isinstance(config, BSDFConfig):
        raise TypeError(f"Expected BSDFConfig, got {type(config).__name__}")

    if config != current:
        logger.info(
            f"BSDF config: diffuse={config.diffuse_brdf.name}, "
            f"masking={config.specular_masking.name}, "
            f"vndf={config.enable_vndf_sampling}"
        )
    current = config


def reset_config() -> None:
    """Restore the default configuration."""
    set_config(DEFAULT_CONFIG)


@contextmanager
def override_config(**changes: Any) -> Generator[BSDFConfig, None, None]:
    """Temporarily change individual configuration switches.

    Args:
        **changes: Field names of BSDFConfig and their new values.

    Yields:
        The temporary configuration.

    Raises:
        ValueError: If a change names an unknown field.
    """
    known = {f.name for f in fields(BSDFConfig)}
    unknown = set(changes) - known
    if unknown:
        raise ValueError(f"Unknown BSDF config fields: {sorted(unknown)}")

    previous = current
    temporary = replace(previous, **changes)
    set_config(temporary)
    try:
        yield temporary
    finally:
        set_config(previous)
