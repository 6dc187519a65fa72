"""Specular microfacet reflection lobe (GGX, Schlick Fresnel).

The lobe models a rough conductor-like reflection:

    f(wo, wi) cos(theta_i) = F(wo . h) D(h) G(wo, wi) / (4 cos(theta_o))

with h = normalize(wo + wi) and F = Schlick(albedo, 1, wo . h).

Sampling draws h from the configured GGX strategy and reflects wo about it.
The reflection Jacobian 1 / (4 wo . h) turns the half vector density into a
density of wi. Most of the terms in eval / pdf then cancel, giving

    weight = F G / G1(wo)                     (VNDF sampling)
    weight = F G (wo . h) / (cos(theta_o) h.z)  (NDF sampling)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.bsdf.lobes.specular import SpecularReflectionMicrofacet
    >>> # Use within a Taichi kernel:
    >>> # lobe = SpecularReflectionMicrofacet(albedo=ti.math.vec3(0.9), alpha=0.1)
"""

import taichi as ti
import taichi.math as tm

from src.bsdf.core import config
from src.bsdf.core.fresnel import eval_fresnel_schlick
from src.bsdf.core.microfacet import (
    K_MIN_GGX_ALPHA,
    eval_g_over_g1_wo,
    eval_masking_smith_ggx,
    eval_ndf_ggx,
    eval_pdf_ggx_half_vector,
    sample_ggx_half_vector,
)
from src.bsdf.core.sampling import reflect
from src.bsdf.lobes.types import (
    K_MIN_COS_THETA,
    LOBE_NONE,
    LOBE_SPECULAR_REFLECTION,
    BSDFSample,
)

# Type aliases for vectors
vec2 = tm.vec2
vec3 = tm.vec3


@ti.dataclass
class SpecularReflectionMicrofacet:
    """Specular microfacet reflection lobe parameters.

    Attributes:
        albedo: Specular reflectance at normal incidence (RGB, F0).
        alpha: GGX width parameter. Clamped to K_MIN_GGX_ALPHA on use.
    """

    albedo: vec3
    alpha: float


@ti.func
def eval_specular_reflection(lobe: SpecularReflectionMicrofacet, wo: vec3, wi: vec3) -> vec3:
    """Evaluate the specular reflection lobe times the foreshortening cosine.

    Args:
        lobe: The lobe parameters.
        wo: Outgoing direction (local frame).
        wi: Incident direction (local frame).

    Returns:
        F D G / (4 cos(theta_o)), or exactly zero if either direction is at
        or below the grazing threshold.
    """
    result = vec3(0.0, 0.0, 0.0)
    if ti.min(wo.z, wi.z) >= K_MIN_COS_THETA:
        alpha = ti.max(lobe.alpha, K_MIN_GGX_ALPHA)
        h = tm.normalize(wo + wi)
        wo_dot_h = tm.dot(wo, h)
        d = eval_ndf_ggx(alpha, h.z)
        g = eval_masking_smith_ggx(alpha, wo.z, wi.z)
        f = eval_fresnel_schlick(lobe.albedo, 1.0, wo_dot_h)
        result = f * d * g * 0.25 / wo.z
    return result


@ti.func
def sample_specular_reflection(
    lobe: SpecularReflectionMicrofacet, wo: vec3, u: vec2
) -> BSDFSample:
    """Sample the specular reflection lobe.

    Args:
        lobe: The lobe parameters.
        wo: Outgoing direction (local frame).
        u: Uniform sample in [0, 1)^2 for the half vector.

    Returns:
        A BSDFSample. Invalid if wo is at or below the grazing threshold, the
        sampled microfacet faces away from wo, or the reflected direction is
        at or below the grazing threshold.
    """
    wi = vec3(0.0, 0.0, 0.0)
    pdf = 0.0
    weight = vec3(0.0, 0.0, 0.0)
    lobe_type = LOBE_NONE
    valid = 0

    if wo.z >= K_MIN_COS_THETA:
        alpha = ti.max(lobe.alpha, K_MIN_GGX_ALPHA)
        h, h_pdf = sample_ggx_half_vector(alpha, wo, u)
        wo_dot_h = tm.dot(wo, h)
        reflected = reflect(wo, h)
        if wo_dot_h > 0.0 and reflected.z >= K_MIN_COS_THETA:
            wi = reflected
            f = eval_fresnel_schlick(lobe.albedo, 1.0, wo_dot_h)
            # Jacobian of the reflection operator
            pdf = h_pdf / (4.0 * wo_dot_h)
            if ti.static(config.current.enable_vndf_sampling):
                weight = f * eval_g_over_g1_wo(alpha, wo.z, wi.z)
            else:
                g = eval_masking_smith_ggx(alpha, wo.z, wi.z)
                weight = f * g * wo_dot_h / (wo.z * h.z)
            lobe_type = LOBE_SPECULAR_REFLECTION
            valid = 1

    return BSDFSample(wi=wi, pdf=pdf, weight=weight, lobe=lobe_type, valid=valid)


@ti.func
def eval_pdf_specular_reflection(
    lobe: SpecularReflectionMicrofacet, wo: vec3, wi: vec3
) -> float:
    """Density with which sample_specular_reflection produces wi.

    Returns:
        pdf(h) / (4 wo . h), or zero if either direction is at or below the
        grazing threshold.
    """
    pdf = 0.0
    if ti.min(wo.z, wi.z) >= K_MIN_COS_THETA:
        alpha = ti.max(lobe.alpha, K_MIN_GGX_ALPHA)
        h = tm.normalize(wo + wi)
        wo_dot_h = tm.dot(wo, h)
        pdf = eval_pdf_ggx_half_vector(alpha, wo, h) / (4.0 * wo_dot_h)
    return pdf
