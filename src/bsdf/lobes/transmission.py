"""Specular microfacet reflection + transmission lobe (rough dielectric).

The lobe models a rough dielectric interface (Walter et al. 2007). A GGX half
vector h is drawn as for the reflection lobe, then the exact dielectric
Fresnel term F(wo . h) decides stochastically between:

    reflection:   wi = reflect(wo, h)
                  f cos = F D G / (4 cos(theta_o))
                  pdf   = F pdf(h) / (4 wo . h)

    transmission: wi = refract(wo, h, eta)
                  f cos = T eta^2 (1 - F) D G |wi . h| (wo . h)
                          / (cos(theta_o) (wi . h + eta wo . h)^2)
                  pdf   = (1 - F) pdf(h) |wi . h| / (wi . h + eta wo . h)^2

eta is the relative IOR (wo side over transmitted side). The eta^2 factor
accounts for the compression of radiance when it crosses the interface.

For a transmitted pair the half vector is recovered as
normalize(-(eta wo + wi)), flipped into the upper hemisphere.
"""

import taichi as ti
import taichi.math as tm

from src.bsdf.core import config
from src.bsdf.core.fresnel import eval_fresnel_dielectric
from src.bsdf.core.microfacet import (
    K_MIN_GGX_ALPHA,
    eval_g_over_g1_wo,
    eval_masking_smith_ggx,
    eval_ndf_ggx,
    eval_pdf_ggx_half_vector,
    sample_ggx_half_vector,
)
from src.bsdf.core.sampling import length_squared, reflect, refract
from src.bsdf.lobes.types import (
    K_MIN_COS_THETA,
    K_MIN_HALF_VECTOR_LENGTH_SQR,
    LOBE_NONE,
    LOBE_SPECULAR_REFLECTION,
    LOBE_SPECULAR_TRANSMISSION,
    BSDFSample,
)

# Type alias for vectors
vec3 = tm.vec3


@ti.dataclass
class SpecularReflectionTransmissionMicrofacet:
    """Rough dielectric lobe parameters.

    Attributes:
        transmission_albedo: Tint applied to transmitted light (RGB).
        alpha: GGX width parameter. Clamped to K_MIN_GGX_ALPHA on use.
        eta: Relative index of refraction (wo side / transmitted side).
            Common values: 1/1.5 entering glass from air, 1.5 leaving it.
    """

    transmission_albedo: vec3
    alpha: float
    eta: float


@ti.func
def _half_vector(wo: vec3, wi: vec3, eta: float):
    """Generalized half vector of a reflected or transmitted pair.

    Returns:
        A tuple of (h, ok) where h is in the upper hemisphere and ok is 0
        when the pair has no well-defined half vector.
    """
    h_raw = wo + wi
    if wi.z < 0.0:
        h_raw = -(wo * eta + wi)

    h = vec3(0.0, 0.0, 1.0)
    ok = 0
    if length_squared(h_raw) > K_MIN_HALF_VECTOR_LENGTH_SQR:
        h = tm.normalize(h_raw)
        if h.z < 0.0:
            h = -h
        ok = 1
    return h, ok


@ti.func
def eval_specular_reflection_transmission(
    lobe: SpecularReflectionTransmissionMicrofacet, wo: vec3, wi: vec3
) -> vec3:
    """Evaluate the rough dielectric lobe times |cos(theta_i)|.

    Args:
        lobe: The lobe parameters.
        wo: Outgoing direction (local frame, upper hemisphere).
        wi: Incident direction (local frame, either hemisphere).

    Returns:
        The reflected or transmitted BSDF value times |cos(theta_i)|, or
        exactly zero for grazing directions, degenerate half vectors, and
        microfacets that could not have produced the pair.
    """
    result = vec3(0.0, 0.0, 0.0)
    if ti.min(wo.z, ti.abs(wi.z)) >= K_MIN_COS_THETA:
        alpha = ti.max(lobe.alpha, K_MIN_GGX_ALPHA)
        eta = lobe.eta
        h, ok = _half_vector(wo, wi, eta)
        wo_dot_h = tm.dot(wo, h)
        wi_dot_h = tm.dot(wi, h)
        if ok == 1 and wo_dot_h > 0.0:
            d = eval_ndf_ggx(alpha, h.z)
            g = eval_masking_smith_ggx(alpha, wo.z, ti.abs(wi.z))
            f, _ = eval_fresnel_dielectric(eta, wo_dot_h)
            if wi.z > 0.0:
                result = vec3(1.0, 1.0, 1.0) * (f * d * g * 0.25 / wo.z)
            elif wi_dot_h < 0.0:
                denom = wi_dot_h + eta * wo_dot_h
                t = eta * eta * (-wi_dot_h) * wo_dot_h / (wo.z * denom * denom)
                result = lobe.transmission_albedo * ((1.0 - f) * d * g * t)
    return result


@ti.func
def sample_specular_reflection_transmission(
    lobe: SpecularReflectionTransmissionMicrofacet, wo: vec3, u: vec3
) -> BSDFSample:
    """Sample the rough dielectric lobe.

    Args:
        lobe: The lobe parameters.
        wo: Outgoing direction (local frame).
        u: Uniform sample in [0, 1)^3. u.x and u.y draw the half vector,
            u.z picks reflection (u.z < F) or transmission.

    Returns:
        A BSDFSample. Invalid if wo is at or below the grazing threshold, the
        microfacet faces away from wo, the constructed pair has a degenerate
        half vector, or the constructed direction lands in the hemisphere
        opposite to the chosen branch.
    """
    wi = vec3(0.0, 0.0, 0.0)
    pdf = 0.0
    weight = vec3(0.0, 0.0, 0.0)
    lobe_type = LOBE_NONE
    valid = 0

    if wo.z >= K_MIN_COS_THETA:
        alpha = ti.max(lobe.alpha, K_MIN_GGX_ALPHA)
        eta = lobe.eta
        h, h_pdf = sample_ggx_half_vector(alpha, wo, tm.vec2(u.x, u.y))
        wo_dot_h = tm.dot(wo, h)
        if wo_dot_h > 0.0:
            f, cos_theta_t = eval_fresnel_dielectric(eta, wo_dot_h)
            if u.z < f:
                reflected = reflect(wo, h)
                _, ok = _half_vector(wo, reflected, eta)
                if ok == 1 and reflected.z >= K_MIN_COS_THETA:
                    wi = reflected
                    pdf = f * h_pdf / (4.0 * wo_dot_h)
                    ratio = 0.0
                    if ti.static(config.current.enable_vndf_sampling):
                        ratio = eval_g_over_g1_wo(alpha, wo.z, wi.z)
                    else:
                        g = eval_masking_smith_ggx(alpha, wo.z, wi.z)
                        ratio = g * wo_dot_h / (wo.z * h.z)
                    weight = vec3(1.0, 1.0, 1.0) * ratio
                    lobe_type = LOBE_SPECULAR_REFLECTION
                    valid = 1
            else:
                refracted = refract(wo, h, eta, cos_theta_t)
                # eta = 1 sends wi straight through, leaving no half vector
                _, ok = _half_vector(wo, refracted, eta)
                if ok == 1 and refracted.z <= -K_MIN_COS_THETA:
                    wi = refracted
                    wi_dot_h = tm.dot(wi, h)
                    denom = wi_dot_h + eta * wo_dot_h
                    # Jacobian of the refraction operator
                    pdf = (1.0 - f) * h_pdf * (-wi_dot_h) / (denom * denom)
                    ratio = 0.0
                    if ti.static(config.current.enable_vndf_sampling):
                        ratio = eval_g_over_g1_wo(alpha, wo.z, -wi.z)
                    else:
                        g = eval_masking_smith_ggx(alpha, wo.z, -wi.z)
                        ratio = g * wo_dot_h / (wo.z * h.z)
                    weight = lobe.transmission_albedo * (eta * eta * ratio)
                    lobe_type = LOBE_SPECULAR_TRANSMISSION
                    valid = 1

    return BSDFSample(wi=wi, pdf=pdf, weight=weight, lobe=lobe_type, valid=valid)


@ti.func
def eval_pdf_specular_reflection_transmission(
    lobe: SpecularReflectionTransmissionMicrofacet, wo: vec3, wi: vec3
) -> float:
    """Density with which sample_specular_reflection_transmission produces wi.

    Returns:
        The Fresnel-weighted branch density, or zero for grazing directions,
        degenerate half vectors, and pairs the sampler cannot produce.
    """
    pdf = 0.0
    if ti.min(wo.z, ti.abs(wi.z)) >= K_MIN_COS_THETA:
        alpha = ti.max(lobe.alpha, K_MIN_GGX_ALPHA)
        eta = lobe.eta
        h, ok = _half_vector(wo, wi, eta)
        wo_dot_h = tm.dot(wo, h)
        wi_dot_h = tm.dot(wi, h)
        if ok == 1 and wo_dot_h > 0.0:
            f, _ = eval_fresnel_dielectric(eta, wo_dot_h)
            h_pdf = eval_pdf_ggx_half_vector(alpha, wo, h)
            if wi.z > 0.0:
                pdf = f * h_pdf / (4.0 * wo_dot_h)
            elif wi_dot_h < 0.0:
                denom = wi_dot_h + eta * wo_dot_h
                pdf = (1.0 - f) * h_pdf * (-wi_dot_h) / (denom * denom)
    return pdf
