"""Standard composite material: diffuse + specular reflection + transmission.

The material combines three lobes:
    - a diffuse reflection lobe (model chosen by the build configuration)
    - a specular microfacet reflection lobe
    - a specular microfacet reflection + transmission lobe

setup_standard_bsdf() turns a per-point MaterialData record into an immutable
StandardBSDF value holding the lobes and their selection probabilities:

    metallic_brdf   = metallic
    dielectric_bsdf = (1 - metallic) * (1 - specular_transmission)
    specular_bsdf   = (1 - metallic) * specular_transmission

    p_diffuse       ~ dielectric_bsdf
    p_specular      ~ metallic_brdf + dielectric_bsdf
    p_transmission  ~ specular_bsdf

normalized to sum to one. When every weight is zero (e.g. all lobes masked
off) the probabilities fall back to (0.5, 0.5, 0.0) so sampling stays
well-defined.

Energy is split separately from the selection probabilities: the diffuse and
specular reflection lobes are scaled by (1 - specular_transmission) and the
transmission lobe by specular_transmission.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.bsdf.materials.standard import (
    ...     MaterialData, setup_standard_bsdf, sample_standard_bsdf
    ... )
    >>> # Use within a Taichi kernel:
    >>> # bsdf = setup_standard_bsdf(material)
    >>> # s = sample_standard_bsdf(bsdf, wo, u)
"""

import taichi as ti
import taichi.math as tm

from src.bsdf.core.microfacet import K_MIN_GGX_ALPHA
from src.bsdf.lobes.diffuse import (
    DiffuseReflection,
    eval_diffuse_reflection,
    eval_pdf_diffuse_reflection,
    sample_diffuse_reflection,
)
from src.bsdf.lobes.specular import (
    SpecularReflectionMicrofacet,
    eval_pdf_specular_reflection,
    eval_specular_reflection,
    sample_specular_reflection,
)
from src.bsdf.lobes.transmission import (
    SpecularReflectionTransmissionMicrofacet,
    eval_pdf_specular_reflection_transmission,
    eval_specular_reflection_transmission,
    sample_specular_reflection_transmission,
)
from src.bsdf.lobes.types import (
    LOBE_DIFFUSE_REFLECTION,
    LOBE_NONE,
    LOBE_SPECULAR_REFLECTION,
    LOBE_SPECULAR_TRANSMISSION,
    BSDFSample,
)

# Type aliases for vectors
vec2 = tm.vec2
vec3 = tm.vec3
vec4 = tm.vec4


@ti.dataclass
class MaterialData:
    """Per-point material description supplied by the shading code.

    Attributes:
        diffuse: Diffuse albedo (RGB).
        specular: Specular albedo at normal incidence (RGB).
        transmission: Transmission albedo (RGB).
        linear_roughness: Perceptual roughness in [0, 1].
        alpha: GGX width derived from the roughness.
        eta: Relative IOR (wo side / transmitted side).
        metallic: Metallic factor in [0, 1].
        specular_transmission: Specular transmission factor in [0, 1].
        active_lobes: LobeType mask of the lobes the material may use.
    """

    diffuse: vec3
    specular: vec3
    transmission: vec3
    linear_roughness: float
    alpha: float
    eta: float
    metallic: float
    specular_transmission: float
    active_lobes: ti.i32


@ti.dataclass
class StandardBSDF:
    """Configured composite material.

    Attributes:
        diffuse_reflection: The diffuse lobe.
        specular_reflection: The specular reflection lobe.
        specular_reflection_transmission: The rough dielectric lobe.
        specular_transmission: Energy share of the rough dielectric lobe.
        p_diffuse_reflection: Selection probability of the diffuse lobe.
        p_specular_reflection: Selection probability of the specular lobe.
        p_specular_reflection_transmission: Selection probability of the
            rough dielectric lobe.
    """

    diffuse_reflection: DiffuseReflection
    specular_reflection: SpecularReflectionMicrofacet
    specular_reflection_transmission: SpecularReflectionTransmissionMicrofacet
    specular_transmission: float
    p_diffuse_reflection: float
    p_specular_reflection: float
    p_specular_reflection_transmission: float


@ti.func
def setup_standard_bsdf(material: MaterialData) -> StandardBSDF:
    """Configure the composite material from a material description.

    Args:
        material: The per-point material description.

    Returns:
        A StandardBSDF with lobe parameters and normalized selection
        probabilities.
    """
    alpha = ti.max(material.alpha, K_MIN_GGX_ALPHA)
    spec_trans = material.specular_transmission

    # Sampling weights
    metallic_brdf = material.metallic
    dielectric_bsdf = (1.0 - material.metallic) * (1.0 - spec_trans)
    specular_bsdf = (1.0 - material.metallic) * spec_trans

    p_diffuse = 0.0
    p_specular = 0.0
    p_transmission = 0.0
    if (material.active_lobes & LOBE_DIFFUSE_REFLECTION) != 0:
        p_diffuse = dielectric_bsdf
    if (material.active_lobes & LOBE_SPECULAR_REFLECTION) != 0:
        p_specular = metallic_brdf + dielectric_bsdf
    if (material.active_lobes & LOBE_SPECULAR_TRANSMISSION) != 0:
        p_transmission = specular_bsdf

    norm_factor = p_diffuse + p_specular + p_transmission
    if norm_factor > 0.0:
        p_diffuse /= norm_factor
        p_specular /= norm_factor
        p_transmission /= norm_factor
    else:
        p_diffuse = 0.5
        p_specular = 0.5
        p_transmission = 0.0

    return StandardBSDF(
        diffuse_reflection=DiffuseReflection(
            albedo=material.diffuse, roughness=material.linear_roughness
        ),
        specular_reflection=SpecularReflectionMicrofacet(albedo=material.specular, alpha=alpha),
        specular_reflection_transmission=SpecularReflectionTransmissionMicrofacet(
            transmission_albedo=material.transmission, alpha=alpha, eta=material.eta
        ),
        specular_transmission=spec_trans,
        p_diffuse_reflection=p_diffuse,
        p_specular_reflection=p_specular,
        p_specular_reflection_transmission=p_transmission,
    )


@ti.func
def eval_standard_bsdf_lobes(bsdf: StandardBSDF) -> ti.i32:
    """LobeType mask of the lobes that can be sampled."""
    lobes = LOBE_NONE
    if bsdf.p_diffuse_reflection > 0.0:
        lobes |= LOBE_DIFFUSE_REFLECTION
    if bsdf.p_specular_reflection > 0.0:
        lobes |= LOBE_SPECULAR_REFLECTION
    if bsdf.p_specular_reflection_transmission > 0.0:
        lobes |= LOBE_SPECULAR_REFLECTION | LOBE_SPECULAR_TRANSMISSION
    return lobes


@ti.func
def eval_standard_bsdf(bsdf: StandardBSDF, wo: vec3, wi: vec3) -> vec3:
    """Evaluate the composite material times |cos(theta_i)|.

    Lobes with zero selection probability are skipped.

    Args:
        bsdf: The configured material.
        wo: Outgoing direction (local frame).
        wi: Incident direction (local frame).

    Returns:
        The energy-weighted sum of the active lobes.
    """
    result = vec3(0.0, 0.0, 0.0)
    reflection_scale = 1.0 - bsdf.specular_transmission
    if bsdf.p_diffuse_reflection > 0.0:
        result += reflection_scale * eval_diffuse_reflection(bsdf.diffuse_reflection, wo, wi)
    if bsdf.p_specular_reflection > 0.0:
        result += reflection_scale * eval_specular_reflection(bsdf.specular_reflection, wo, wi)
    if bsdf.p_specular_reflection_transmission > 0.0:
        result += bsdf.specular_transmission * eval_specular_reflection_transmission(
            bsdf.specular_reflection_transmission, wo, wi
        )
    return result


@ti.func
def eval_pdf_standard_bsdf(bsdf: StandardBSDF, wo: vec3, wi: vec3) -> float:
    """Mixture density of sample_standard_bsdf for wi.

    Returns:
        The sum of each lobe's density weighted by its selection probability.
    """
    pdf = 0.0
    if bsdf.p_diffuse_reflection > 0.0:
        pdf += bsdf.p_diffuse_reflection * eval_pdf_diffuse_reflection(
            bsdf.diffuse_reflection, wo, wi
        )
    if bsdf.p_specular_reflection > 0.0:
        pdf += bsdf.p_specular_reflection * eval_pdf_specular_reflection(
            bsdf.specular_reflection, wo, wi
        )
    if bsdf.p_specular_reflection_transmission > 0.0:
        pdf += bsdf.p_specular_reflection_transmission * eval_pdf_specular_reflection_transmission(
            bsdf.specular_reflection_transmission, wo, wi
        )
    return pdf


@ti.func
def sample_standard_bsdf(bsdf: StandardBSDF, wo: vec3, u: vec4) -> BSDFSample:
    """Sample the composite material.

    u.x selects a lobe by its selection probability (diffuse, then specular
    reflection, then transmission). The remaining components are handed to
    the chosen lobe. The returned weight is the lobe weight divided by its
    selection probability and scaled by its energy share; the returned pdf is
    the full mixture density. A failed lobe sample is returned as-is.

    weight = eval / pdf holds for the chosen lobe, not for the mixture: when
    several lobes overlap, weight differs from eval_standard_bsdf() divided by
    the returned pdf, so MIS callers should combine eval and pdf themselves.

    Args:
        bsdf: The configured material.
        wo: Outgoing direction (local frame).
        u: Uniform sample in [0, 1)^4.

    Returns:
        A BSDFSample.
    """
    wi = vec3(0.0, 0.0, 0.0)
    pdf = 0.0
    weight = vec3(0.0, 0.0, 0.0)
    lobe_type = LOBE_NONE
    valid = 0

    p_diffuse = bsdf.p_diffuse_reflection
    p_specular = bsdf.p_specular_reflection
    p_transmission = bsdf.p_specular_reflection_transmission
    reflection_scale = 1.0 - bsdf.specular_transmission
    u_lobe = vec2(u.y, u.z)

    if u.x < p_diffuse:
        s = sample_diffuse_reflection(bsdf.diffuse_reflection, wo, u_lobe)
        if s.valid == 1:
            wi = s.wi
            weight = s.weight / p_diffuse * reflection_scale
            pdf = s.pdf * p_diffuse
            if p_specular > 0.0:
                pdf += p_specular * eval_pdf_specular_reflection(bsdf.specular_reflection, wo, wi)
            if p_transmission > 0.0:
                pdf += p_transmission * eval_pdf_specular_reflection_transmission(
                    bsdf.specular_reflection_transmission, wo, wi
                )
            lobe_type = s.lobe
            valid = 1
    elif u.x < p_diffuse + p_specular:
        s = sample_specular_reflection(bsdf.specular_reflection, wo, u_lobe)
        if s.valid == 1:
            wi = s.wi
            weight = s.weight / p_specular * reflection_scale
            pdf = s.pdf * p_specular
            if p_diffuse > 0.0:
                pdf += p_diffuse * eval_pdf_diffuse_reflection(bsdf.diffuse_reflection, wo, wi)
            if p_transmission > 0.0:
                pdf += p_transmission * eval_pdf_specular_reflection_transmission(
                    bsdf.specular_reflection_transmission, wo, wi
                )
            lobe_type = s.lobe
            valid = 1
    elif p_transmission > 0.0:
        s = sample_specular_reflection_transmission(
            bsdf.specular_reflection_transmission, wo, vec3(u.y, u.z, u.w)
        )
        if s.valid == 1:
            wi = s.wi
            weight = s.weight / p_transmission * bsdf.specular_transmission
            pdf = s.pdf * p_transmission
            if p_diffuse > 0.0:
                pdf += p_diffuse * eval_pdf_diffuse_reflection(bsdf.diffuse_reflection, wo, wi)
            if p_specular > 0.0:
                pdf += p_specular * eval_pdf_specular_reflection(bsdf.specular_reflection, wo, wi)
            lobe_type = s.lobe
            valid = 1

    return BSDFSample(wi=wi, pdf=pdf, weight=weight, lobe=lobe_type, valid=valid)
