"""Diffuse reflection lobes.

Three diffuse models share one parameter record and one sampling strategy
(cosine-weighted hemisphere sampling, pdf = cos(theta_i) / pi); they differ
only in the value they return:

    Lambert:    f = albedo / pi
    Disney:     f = albedo / pi * S(wi) * S(wo)
    Frostbite:  f = albedo / pi * S(wi) * S(wo) * lerp(1, 1 / 1.51, roughness)

where S(c) = Schlick(1, fd90, c) is a grazing retro-reflection factor driven
by roughness and the half vector. Frostbite biases fd90 and renormalizes the
energy so the lobe does not reflect more than the albedo at high roughness.

The model used by DiffuseReflection is selected by the build configuration
(src.bsdf.core.config.DiffuseBrdf).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.bsdf.lobes.diffuse import DiffuseReflection, sample_diffuse_reflection
    >>> # Use within a Taichi kernel:
    >>> # lobe = DiffuseReflection(albedo=ti.math.vec3(0.8), roughness=0.5)
    >>> # s = sample_diffuse_reflection(lobe, wo, u)
"""

import taichi as ti
import taichi.math as tm

from src.bsdf.core import config
from src.bsdf.core.config import DiffuseBrdf
from src.bsdf.core.fresnel import eval_fresnel_schlick
from src.bsdf.core.sampling import sample_cosine_hemisphere_concentric
from src.bsdf.lobes.types import (
    K_MIN_COS_THETA,
    LOBE_DIFFUSE_REFLECTION,
    LOBE_NONE,
    BSDFSample,
)

# Type aliases for vectors
vec2 = tm.vec2
vec3 = tm.vec3


@ti.dataclass
class DiffuseReflection:
    """Diffuse reflection lobe parameters.

    Attributes:
        albedo: Diffuse reflectance (RGB, each component in [0, 1]).
        roughness: Linear roughness in [0, 1]. Ignored by the Lambertian model.
    """

    albedo: vec3
    roughness: float


# =============================================================================
# Lobe Weights (BSDF value * cos / pdf)
# =============================================================================


@ti.func
def eval_weight_lambert(albedo: vec3, roughness: float, wo: vec3, wi: vec3) -> vec3:
    """Sample weight of the Lambertian model.

    With cosine-weighted sampling the cosine and the 1/pi terms cancel:
        weight = (albedo / pi) * cos_theta / (cos_theta / pi) = albedo
    """
    return albedo


@ti.func
def eval_weight_disney(albedo: vec3, roughness: float, wo: vec3, wi: vec3) -> vec3:
    """Sample weight of the Disney diffuse model."""
    h = tm.normalize(wo + wi)
    wo_dot_h = tm.dot(wo, h)
    fd90 = 0.5 + 2.0 * wo_dot_h * wo_dot_h * roughness
    wi_scatter = eval_fresnel_schlick(1.0, fd90, wi.z)
    wo_scatter = eval_fresnel_schlick(1.0, fd90, wo.z)
    return albedo * wi_scatter * wo_scatter


@ti.func
def eval_weight_frostbite(albedo: vec3, roughness: float, wo: vec3, wi: vec3) -> vec3:
    """Sample weight of the Frostbite (energy renormalized Disney) model."""
    h = tm.normalize(wo + wi)
    wo_dot_h = tm.dot(wo, h)
    energy_bias = tm.mix(0.0, 0.5, roughness)
    energy_factor = tm.mix(1.0, 1.0 / 1.51, roughness)
    fd90 = energy_bias + 2.0 * wo_dot_h * wo_dot_h * roughness
    wi_scatter = eval_fresnel_schlick(1.0, fd90, wi.z)
    wo_scatter = eval_fresnel_schlick(1.0, fd90, wo.z)
    return albedo * wi_scatter * wo_scatter * energy_factor


@ti.func
def eval_weight_diffuse(albedo: vec3, roughness: float, wo: vec3, wi: vec3) -> vec3:
    """Sample weight of the diffuse model selected by the build configuration."""
    weight = vec3(0.0, 0.0, 0.0)
    if ti.static(config.current.diffuse_brdf == DiffuseBrdf.LAMBERT):
        weight = eval_weight_lambert(albedo, roughness, wo, wi)
    elif ti.static(config.current.diffuse_brdf == DiffuseBrdf.DISNEY):
        weight = eval_weight_disney(albedo, roughness, wo, wi)
    else:
        weight = eval_weight_frostbite(albedo, roughness, wo, wi)
    return weight


# =============================================================================
# Lobe Queries
# =============================================================================


@ti.func
def eval_diffuse_reflection(lobe: DiffuseReflection, wo: vec3, wi: vec3) -> vec3:
    """Evaluate the diffuse lobe times the foreshortening cosine.

    Args:
        lobe: The diffuse lobe parameters.
        wo: Outgoing direction (local frame).
        wi: Incident direction (local frame).

    Returns:
        f(wo, wi) * cos(theta_i), or exactly zero if either direction is at
        or below the grazing threshold.
    """
    result = vec3(0.0, 0.0, 0.0)
    if ti.min(wo.z, wi.z) >= K_MIN_COS_THETA:
        weight = eval_weight_diffuse(lobe.albedo, lobe.roughness, wo, wi)
        result = weight * wi.z / tm.pi
    return result


@ti.func
def sample_diffuse_reflection(lobe: DiffuseReflection, wo: vec3, u: vec2) -> BSDFSample:
    """Sample the diffuse lobe with cosine-weighted hemisphere sampling.

    Args:
        lobe: The diffuse lobe parameters.
        wo: Outgoing direction (local frame).
        u: Uniform sample in [0, 1)^2.

    Returns:
        A BSDFSample. Invalid if wo or the sampled wi is at or below the
        grazing threshold.
    """
    wi = vec3(0.0, 0.0, 0.0)
    pdf = 0.0
    weight = vec3(0.0, 0.0, 0.0)
    lobe_type = LOBE_NONE
    valid = 0
    dir_sample, dir_pdf = sample_cosine_hemisphere_concentric(u)
    if ti.min(wo.z, dir_sample.z) >= K_MIN_COS_THETA:
        wi = dir_sample
        pdf = dir_pdf
        weight = eval_weight_diffuse(lobe.albedo, lobe.roughness, wo, wi)
        lobe_type = LOBE_DIFFUSE_REFLECTION
        valid = 1
    return BSDFSample(wi=wi, pdf=pdf, weight=weight, lobe=lobe_type, valid=valid)


@ti.func
def eval_pdf_diffuse_reflection(lobe: DiffuseReflection, wo: vec3, wi: vec3) -> float:
    """Density of cosine-weighted sampling, cos(theta_i) / pi.

    Returns:
        The pdf, or zero if either direction is at or below the grazing
        threshold.
    """
    pdf = 0.0
    if ti.min(wo.z, wi.z) >= K_MIN_COS_THETA:
        pdf = wi.z / tm.pi
    return pdf
