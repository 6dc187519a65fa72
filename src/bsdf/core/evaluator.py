"""Batch evaluation of the standard material from NumPy.

This module exposes the composite material to Python-scope callers. One
material is active at a time; it is stored in 0-d Taichi fields by
setup_material() and read by the batch kernels, which configure a
StandardBSDF per query and evaluate, sample, or compute densities for arrays
of directions.

Kernels read the build configuration when they are compiled, so they are
compiled once per BSDFConfig and cached.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.bsdf.core.evaluator import setup_material, eval_bsdf
    >>> from src.bsdf.materials.description import MaterialDescription
    >>> setup_material(MaterialDescription(diffuse=(0.8, 0.8, 0.8)))
    >>> wo = np.array([[0.0, 0.0, 1.0]])
    >>> values = eval_bsdf(wo, wo)  # shape (1, 3)
"""

import functools
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.bsdf.core import config
from src.bsdf.core.config import BSDFConfig
from src.bsdf.core.sampling import random_vec4
from src.bsdf.lobes.types import LobeType
from src.bsdf.materials.description import MaterialDescription
from src.bsdf.materials.standard import (
    MaterialData,
    eval_pdf_standard_bsdf,
    eval_standard_bsdf,
    eval_standard_bsdf_lobes,
    sample_standard_bsdf,
    setup_standard_bsdf,
)

logger = logging.getLogger(__name__)

# Type aliases for vectors
vec3 = tm.vec3
vec4 = tm.vec4

# =============================================================================
# Active Material Storage
# =============================================================================

_diffuse = ti.Vector.field(3, dtype=float, shape=())
_specular = ti.Vector.field(3, dtype=float, shape=())
_transmission = ti.Vector.field(3, dtype=float, shape=())
_linear_roughness = ti.field(dtype=float, shape=())
_alpha = ti.field(dtype=float, shape=())
_eta = ti.field(dtype=float, shape=())
_metallic = ti.field(dtype=float, shape=())
_specular_transmission = ti.field(dtype=float, shape=())
_active_lobes = ti.field(dtype=ti.i32, shape=())

# Flag to track if a material has been set
_material_set = ti.field(dtype=ti.i32, shape=())

# Kernel outputs
_probabilities = ti.Vector.field(3, dtype=float, shape=())
_sampled_lobes = ti.field(dtype=ti.i32, shape=())
_weight_sum = ti.Vector.field(3, dtype=float, shape=())


@dataclass
class BatchSample:
    """Result of sample_bsdf() for N outgoing directions.

    Attributes:
        wi: Sampled incident directions, shape (N, 3). Zero where invalid.
        pdf: Mixture densities, shape (N,). Zero where invalid.
        weight: Sample weights, shape (N, 3). Zero where invalid.
        lobe: LobeType bit of the sampled lobe, shape (N,).
        valid: True where a direction was produced, shape (N,).
    """

    wi: npt.NDArray[np.float64]
    pdf: npt.NDArray[np.float64]
    weight: npt.NDArray[np.float64]
    lobe: npt.NDArray[np.int32]
    valid: npt.NDArray[np.bool_]

    def __len__(self) -> int:
        return int(self.pdf.shape[0])


def setup_material(description: MaterialDescription) -> None:
    """Make a material the active one for batch queries.

    Args:
        description: The validated material description.

    Raises:
        TypeError: If description is not a MaterialDescription.
    """
    if not isinstance(description, MaterialDescription):
        raise TypeError(f"Expected MaterialDescription, got {type(description).__name__}")

    _diffuse[None] = list(description.diffuse)
    _specular[None] = list(description.specular)
    _transmission[None] = list(description.transmission)
    _linear_roughness[None] = description.linear_roughness
    _alpha[None] = description.alpha
    _eta[None] = description.eta
    _metallic[None] = description.metallic
    _specular_transmission[None] = description.specular_transmission
    _active_lobes[None] = int(description.active_lobes)
    _material_set[None] = 1

    logger.debug(f"Active material set: {description}")


def clear_material() -> None:
    """Forget the active material."""
    _material_set[None] = 0


def is_material_set() -> bool:
    """Check whether a material has been set up."""
    return bool(_material_set[None])


def _check_material_set() -> None:
    """Check if a material is set and raise if not."""
    if _material_set[None] == 0:
        raise RuntimeError("No material set up. Call setup_material() first.")


def _as_array(name: str, values: npt.ArrayLike, width: int) -> npt.NDArray[np.float64]:
    """Convert input to a contiguous (N, width) float64 array."""
    array = np.ascontiguousarray(np.atleast_2d(np.asarray(values, dtype=np.float64)))
    if array.ndim != 2 or array.shape[1] != width:
        raise ValueError(f"{name} must have shape (N, {width}), got {array.shape}")
    return array


# =============================================================================
# Kernels
# =============================================================================


@ti.func
def _load_material() -> MaterialData:
    """Read the active material from the storage fields."""
    return MaterialData(
        diffuse=_diffuse[None],
        specular=_specular[None],
        transmission=_transmission[None],
        linear_roughness=_linear_roughness[None],
        alpha=_alpha[None],
        eta=_eta[None],
        metallic=_metallic[None],
        specular_transmission=_specular_transmission[None],
        active_lobes=_active_lobes[None],
    )


@dataclass(frozen=True)
class _Kernels:
    probabilities: object
    eval: object
    eval_pdf: object
    sample: object
    accumulate_weights: object


@functools.lru_cache(maxsize=None)
def _build_kernels(cfg: BSDFConfig) -> _Kernels:
    """Define the batch kernels for one build configuration.

    Taichi compiles each kernel on its first call, which happens while cfg is
    the active configuration.
    """
    logger.debug(f"Building batch kernels for {cfg}")

    @ti.kernel
    def probabilities_kernel():
        bsdf = setup_standard_bsdf(_load_material())
        _probabilities[None] = vec3(
            bsdf.p_diffuse_reflection,
            bsdf.p_specular_reflection,
            bsdf.p_specular_reflection_transmission,
        )
        _sampled_lobes[None] = eval_standard_bsdf_lobes(bsdf)

    @ti.kernel
    def eval_kernel(
        wo: ti.types.ndarray(), wi: ti.types.ndarray(), out: ti.types.ndarray()
    ):
        for i in range(wo.shape[0]):
            bsdf = setup_standard_bsdf(_load_material())
            f = eval_standard_bsdf(
                bsdf, vec3(wo[i, 0], wo[i, 1], wo[i, 2]), vec3(wi[i, 0], wi[i, 1], wi[i, 2])
            )
            for c in ti.static(range(3)):
                out[i, c] = f[c]

    @ti.kernel
    def eval_pdf_kernel(
        wo: ti.types.ndarray(), wi: ti.types.ndarray(), out: ti.types.ndarray()
    ):
        for i in range(wo.shape[0]):
            bsdf = setup_standard_bsdf(_load_material())
            out[i] = eval_pdf_standard_bsdf(
                bsdf, vec3(wo[i, 0], wo[i, 1], wo[i, 2]), vec3(wi[i, 0], wi[i, 1], wi[i, 2])
            )

    @ti.kernel
    def sample_kernel(
        wo: ti.types.ndarray(),
        u: ti.types.ndarray(),
        wi: ti.types.ndarray(),
        pdf: ti.types.ndarray(),
        weight: ti.types.ndarray(),
        lobe: ti.types.ndarray(),
        valid: ti.types.ndarray(),
    ):
        for i in range(wo.shape[0]):
            bsdf = setup_standard_bsdf(_load_material())
            s = sample_standard_bsdf(
                bsdf,
                vec3(wo[i, 0], wo[i, 1], wo[i, 2]),
                vec4(u[i, 0], u[i, 1], u[i, 2], u[i, 3]),
            )
            for c in ti.static(range(3)):
                wi[i, c] = s.wi[c]
                weight[i, c] = s.weight[c]
            pdf[i] = s.pdf
            lobe[i] = s.lobe
            valid[i] = s.valid

    @ti.kernel
    def accumulate_weights_kernel(wo_x: float, wo_y: float, wo_z: float, num_samples: ti.i32):
        for _ in range(num_samples):
            bsdf = setup_standard_bsdf(_load_material())
            s = sample_standard_bsdf(bsdf, vec3(wo_x, wo_y, wo_z), random_vec4())
            if s.valid == 1:
                _weight_sum[None] += s.weight

    return _Kernels(
        probabilities=probabilities_kernel,
        eval=eval_kernel,
        eval_pdf=eval_pdf_kernel,
        sample=sample_kernel,
        accumulate_weights=accumulate_weights_kernel,
    )


def _kernels() -> _Kernels:
    return _build_kernels(config.get_config())


# =============================================================================
# Batch Queries
# =============================================================================


def get_selection_probabilities() -> tuple[float, float, float]:
    """Get the lobe selection probabilities of the active material.

    Returns:
        Tuple of (p_diffuse_reflection, p_specular_reflection,
        p_specular_reflection_transmission).

    Raises:
        RuntimeError: If no material has been set up.
    """
    _check_material_set()
    _kernels().probabilities()
    p = _probabilities[None]
    return float(p[0]), float(p[1]), float(p[2])


def get_sampled_lobes() -> LobeType:
    """Get the lobe types the active material can produce when sampled.

    Raises:
        RuntimeError: If no material has been set up.
    """
    _check_material_set()
    _kernels().probabilities()
    return LobeType(int(_sampled_lobes[None]))


def eval_bsdf(wo: npt.ArrayLike, wi: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Evaluate the active material times |cos(theta_i)|.

    Args:
        wo: Outgoing directions in the local frame, shape (N, 3).
        wi: Incident directions in the local frame, shape (N, 3).

    Returns:
        Array of shape (N, 3).

    Raises:
        RuntimeError: If no material has been set up.
        ValueError: If the arrays are mis-shaped.
    """
    _check_material_set()
    wo_array = _as_array("wo", wo, 3)
    wi_array = _as_array("wi", wi, 3)
    if wo_array.shape != wi_array.shape:
        raise ValueError(f"wo and wi shapes differ: {wo_array.shape} vs {wi_array.shape}")

    out = np.zeros_like(wo_array)
    _kernels().eval(wo_array, wi_array, out)
    return out


def eval_pdf(wo: npt.ArrayLike, wi: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Mixture density with which sample_bsdf() produces wi.

    Args:
        wo: Outgoing directions in the local frame, shape (N, 3).
        wi: Incident directions in the local frame, shape (N, 3).

    Returns:
        Array of shape (N,).

    Raises:
        RuntimeError: If no material has been set up.
        ValueError: If the arrays are mis-shaped.
    """
    _check_material_set()
    wo_array = _as_array("wo", wo, 3)
    wi_array = _as_array("wi", wi, 3)
    if wo_array.shape != wi_array.shape:
        raise ValueError(f"wo and wi shapes differ: {wo_array.shape} vs {wi_array.shape}")

    out = np.zeros(wo_array.shape[0], dtype=np.float64)
    _kernels().eval_pdf(wo_array, wi_array, out)
    return out


def sample_bsdf(
    wo: npt.ArrayLike,
    u: Optional[npt.ArrayLike] = None,
    seed: Optional[int] = None,
) -> BatchSample:
    """Sample incident directions for the active material.

    Args:
        wo: Outgoing directions in the local frame, shape (N, 3).
        u: Uniform numbers in [0, 1), shape (N, 4). Drawn from a NumPy
            generator seeded with seed if omitted.
        seed: Seed for the generator used when u is omitted.

    Returns:
        A BatchSample with N entries.

    Raises:
        RuntimeError: If no material has been set up.
        ValueError: If the arrays are mis-shaped or u is outside [0, 1).
    """
    _check_material_set()
    wo_array = _as_array("wo", wo, 3)
    n = wo_array.shape[0]
    if u is None:
        u_array = np.random.default_rng(seed).random((n, 4))
    else:
        u_array = _as_array("u", u, 4)
        if u_array.shape[0] != n:
            raise ValueError(f"u has {u_array.shape[0]} rows, expected {n}")
        if np.any(u_array < 0.0) or np.any(u_array >= 1.0):
            raise ValueError("u must lie in [0, 1)")

    wi = np.zeros((n, 3), dtype=np.float64)
    pdf = np.zeros(n, dtype=np.float64)
    weight = np.zeros((n, 3), dtype=np.float64)
    lobe = np.zeros(n, dtype=np.int32)
    valid = np.zeros(n, dtype=np.int32)
    _kernels().sample(wo_array, u_array, wi, pdf, weight, lobe, valid)

    return BatchSample(wi=wi, pdf=pdf, weight=weight, lobe=lobe, valid=valid.astype(bool))


def estimate_directional_albedo(
    wo: npt.ArrayLike, num_samples: int = 100_000
) -> npt.NDArray[np.float64]:
    """Estimate the directional albedo of the active material.

    Averages the sample weights over num_samples draws, which is an unbiased
    estimate of the integral of eval(wo, .) over the sphere of directions.

    Args:
        wo: A single outgoing direction in the local frame.
        num_samples: Number of samples to draw.

    Returns:
        Array of shape (3,).

    Raises:
        RuntimeError: If no material has been set up.
        ValueError: If num_samples is not positive or wo is mis-shaped.
    """
    _check_material_set()
    if num_samples <= 0:
        raise ValueError(f"num_samples = {num_samples} must be positive")
    wo_array = _as_array("wo", wo, 3)
    if wo_array.shape[0] != 1:
        raise ValueError(f"wo must be a single direction, got {wo_array.shape[0]}")

    _weight_sum[None] = [0.0, 0.0, 0.0]
    x, y, z = (float(c) for c in wo_array[0])
    _kernels().accumulate_weights(x, y, z, num_samples)
    return _weight_sum.to_numpy() / num_samples
