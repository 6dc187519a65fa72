"""GGX (Trowbridge-Reitz) microfacet distribution utilities.

This module implements the isotropic GGX normal distribution function, the
Smith masking-shadowing terms, and two strategies to importance sample a
microfacet normal (half vector):

    D(h)     = a^2 / (pi * ((a^2 - 1) cos^2(theta_h) + 1)^2)
    Lambda   = (-1 + sqrt(1 + a^2 tan^2(theta))) / 2
    G1       = 1 / (1 + Lambda)

NDF sampling draws h with density D(h) cos(theta_h). VNDF sampling draws only
normals visible from wo (Heitz 2018), with density G1(wo) D(h) (wo . h) / wo.z,
which lowers the variance of the sample weights.

The masking formula and the sampling strategy are build-time switches read
from src.bsdf.core.config through ti.static().

All directions are in the local shading frame (normal = +z).
"""

import taichi as ti
import taichi.math as tm

from src.bsdf.core import config
from src.bsdf.core.config import SpecularMasking

# Type aliases for vectors
vec2 = tm.vec2
vec3 = tm.vec3

# Smallest GGX width; narrower distributions overflow D and break masking.
K_MIN_GGX_ALPHA = 1e-3


# =============================================================================
# Distribution and Masking
# =============================================================================


@ti.func
def eval_ndf_ggx(alpha: float, cos_theta: float) -> float:
    """Evaluate the GGX normal distribution function.

    Args:
        alpha: GGX width parameter.
        cos_theta: Cosine of the angle between the half vector and the normal.

    Returns:
        The microfacet density D(h), or 0 for normals below the surface.
    """
    result = 0.0
    if cos_theta > 0.0:
        a2 = alpha * alpha
        d = (cos_theta * a2 - cos_theta) * cos_theta + 1.0
        result = a2 / (d * d * tm.pi)
    return result


@ti.func
def eval_lambda_ggx(alpha_sqr: float, cos_theta: float) -> float:
    """Evaluate the Smith Lambda function for GGX.

    Args:
        alpha_sqr: Squared GGX width parameter.
        cos_theta: Cosine of the direction with the normal.

    Returns:
        Lambda(theta), or 0 for directions below the surface.
    """
    result = 0.0
    if cos_theta > 0.0:
        cos_theta_sqr = cos_theta * cos_theta
        tan_theta_sqr = ti.max(1.0 - cos_theta_sqr, 0.0) / cos_theta_sqr
        result = 0.5 * (-1.0 + ti.sqrt(1.0 + alpha_sqr * tan_theta_sqr))
    return result


@ti.func
def eval_g1_ggx(alpha_sqr: float, cos_theta: float) -> float:
    """Evaluate the Smith monodirectional masking term G1 for GGX.

    Args:
        alpha_sqr: Squared GGX width parameter.
        cos_theta: Cosine of the direction with the normal.

    Returns:
        G1(theta) in [0, 1], or 0 for directions below the surface.
    """
    result = 0.0
    if cos_theta > 0.0:
        cos_theta_sqr = cos_theta * cos_theta
        tan_theta_sqr = ti.max(1.0 - cos_theta_sqr, 0.0) / cos_theta_sqr
        result = 2.0 / (1.0 + ti.sqrt(1.0 + alpha_sqr * tan_theta_sqr))
    return result


@ti.func
def eval_masking_smith_ggx_separable(
    alpha: float, cos_theta_o: float, cos_theta_i: float
) -> float:
    """Separable Smith masking-shadowing, G1(wo) * G1(wi).

    Args:
        alpha: GGX width parameter.
        cos_theta_o: Cosine of the outgoing direction with the normal.
        cos_theta_i: Cosine of the incident direction with the normal.

    Returns:
        The masking-shadowing term, or 0 if either direction is below the
        surface.
    """
    result = 0.0
    if cos_theta_o > 0.0 and cos_theta_i > 0.0:
        alpha_sqr = alpha * alpha
        lambda_o = eval_lambda_ggx(alpha_sqr, cos_theta_o)
        lambda_i = eval_lambda_ggx(alpha_sqr, cos_theta_i)
        result = 1.0 / ((1.0 + lambda_o) * (1.0 + lambda_i))
    return result


@ti.func
def eval_masking_smith_ggx_correlated(
    alpha: float, cos_theta_o: float, cos_theta_i: float
) -> float:
    """Height-correlated Smith masking-shadowing, 1 / (1 + Lo + Li).

    Args:
        alpha: GGX width parameter.
        cos_theta_o: Cosine of the outgoing direction with the normal.
        cos_theta_i: Cosine of the incident direction with the normal.

    Returns:
        The masking-shadowing term, or 0 if either direction is below the
        surface.
    """
    result = 0.0
    if cos_theta_o > 0.0 and cos_theta_i > 0.0:
        alpha_sqr = alpha * alpha
        lambda_o = eval_lambda_ggx(alpha_sqr, cos_theta_o)
        lambda_i = eval_lambda_ggx(alpha_sqr, cos_theta_i)
        result = 1.0 / (1.0 + lambda_o + lambda_i)
    return result


@ti.func
def eval_masking_smith_ggx(alpha: float, cos_theta_o: float, cos_theta_i: float) -> float:
    """Masking-shadowing term selected by the build configuration."""
    result = 0.0
    if ti.static(config.current.specular_masking == SpecularMasking.SMITH_GGX_CORRELATED):
        result = eval_masking_smith_ggx_correlated(alpha, cos_theta_o, cos_theta_i)
    else:
        result = eval_masking_smith_ggx_separable(alpha, cos_theta_o, cos_theta_i)
    return result


@ti.func
def eval_g_over_g1_wo(alpha: float, cos_theta_o: float, cos_theta_i: float) -> float:
    """Ratio G(wo, wi) / G1(wo) of the configured masking term.

    Both masking formulas share G1(wo) = 1 / (1 + Lambda(wo)), so the ratio is
    G * (1 + Lambda(wo)). This is the weight of a VNDF-sampled microfacet
    lobe with the distribution terms cancelled.
    """
    g = eval_masking_smith_ggx(alpha, cos_theta_o, cos_theta_i)
    return g * (1.0 + eval_lambda_ggx(alpha * alpha, cos_theta_o))


# =============================================================================
# Half Vector Sampling
# =============================================================================


@ti.func
def eval_pdf_ggx_ndf(alpha: float, cos_theta: float) -> float:
    """Density of NDF sampling, D(h) cos(theta_h), w.r.t. solid angle of h."""
    return eval_ndf_ggx(alpha, cos_theta) * ti.max(cos_theta, 0.0)


@ti.func
def sample_ggx_ndf(alpha: float, u: vec2):
    """Sample a half vector proportional to D(h) cos(theta_h).

    Args:
        alpha: GGX width parameter.
        u: Uniform sample in [0, 1)^2.

    Returns:
        A tuple of (h, pdf) with h in the upper hemisphere.
    """
    alpha_sqr = alpha * alpha
    phi = u.y * (2.0 * tm.pi)
    tan_theta_sqr = alpha_sqr * u.x / (1.0 - u.x)
    cos_theta = 1.0 / ti.sqrt(1.0 + tan_theta_sqr)
    r = ti.sqrt(ti.max(1.0 - cos_theta * cos_theta, 0.0))
    h = vec3(ti.cos(phi) * r, ti.sin(phi) * r, cos_theta)
    pdf = eval_pdf_ggx_ndf(alpha, cos_theta)
    return h, pdf


@ti.func
def eval_pdf_ggx_vndf(alpha: float, wo: vec3, h: vec3) -> float:
    """Density of VNDF sampling, G1(wo) D(h) max(0, wo . h) / wo.z."""
    pdf = 0.0
    if wo.z > 0.0:
        g1 = eval_g1_ggx(alpha * alpha, wo.z)
        d = eval_ndf_ggx(alpha, h.z)
        pdf = g1 * d * ti.max(0.0, tm.dot(wo, h)) / wo.z
    return pdf


@ti.func
def sample_ggx_vndf(alpha: float, wo: vec3, u: vec2):
    """Sample a half vector from the distribution of normals visible from wo.

    Stretches wo into the configuration of a unit-roughness hemisphere,
    samples the projected area of the hemisphere, and unstretches the result.

    Args:
        alpha: GGX width parameter.
        wo: Outgoing direction in the upper hemisphere.
        u: Uniform sample in [0, 1)^2.

    Returns:
        A tuple of (h, pdf) with h in the upper hemisphere.
    """
    vh = tm.normalize(vec3(alpha * wo.x, alpha * wo.y, wo.z))

    # Orthonormal basis around the stretched view direction
    lensq = vh.x * vh.x + vh.y * vh.y
    t1 = vec3(1.0, 0.0, 0.0)
    if lensq > 0.0:
        t1 = vec3(-vh.y, vh.x, 0.0) / ti.sqrt(lensq)
    t2 = tm.cross(vh, t1)

    # Uniform disk sample, warped onto the visible half of the projected disk
    r = ti.sqrt(u.x)
    phi = 2.0 * tm.pi * u.y
    p1 = r * ti.cos(phi)
    p2 = r * ti.sin(phi)
    s = 0.5 * (1.0 + vh.z)
    p2 = (1.0 - s) * ti.sqrt(ti.max(1.0 - p1 * p1, 0.0)) + s * p2

    # Reproject onto the hemisphere and unstretch
    nh = p1 * t1 + p2 * t2 + ti.sqrt(ti.max(0.0, 1.0 - p1 * p1 - p2 * p2)) * vh
    h = tm.normalize(vec3(alpha * nh.x, alpha * nh.y, ti.max(0.0, nh.z)))
    pdf = eval_pdf_ggx_vndf(alpha, wo, h)
    return h, pdf


@ti.func
def sample_ggx_half_vector(alpha: float, wo: vec3, u: vec2):
    """Sample a half vector with the configured strategy (NDF or VNDF)."""
    h = vec3(0.0, 0.0, 1.0)
    pdf = 0.0
    if ti.static(config.current.enable_vndf_sampling):
        h, pdf = sample_ggx_vndf(alpha, wo, u)
    else:
        h, pdf = sample_ggx_ndf(alpha, u)
    return h, pdf


@ti.func
def eval_pdf_ggx_half_vector(alpha: float, wo: vec3, h: vec3) -> float:
    """Density of the configured half vector sampling strategy."""
    pdf = 0.0
    if ti.static(config.current.enable_vndf_sampling):
        pdf = eval_pdf_ggx_vndf(alpha, wo, h)
    else:
        pdf = eval_pdf_ggx_ndf(alpha, h.z)
    return pdf
