"""Vector utilities and sample warps for the local shading frame.

All directions handled by the BSDF live in a local orthonormal frame where the
shading normal is the +z axis, so the cosine of a direction with the normal is
simply its z component. The warps map uniform numbers in [0, 1)^2 to the
distributions used for importance sampling.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.bsdf.core.sampling import sample_cosine_hemisphere_concentric
    >>> # Use within a Taichi kernel:
    >>> # wi, pdf = sample_cosine_hemisphere_concentric(ti.math.vec2(0.3, 0.7))
"""

import taichi as ti
import taichi.math as tm

# Type aliases for vectors
vec2 = tm.vec2
vec3 = tm.vec3
vec4 = tm.vec4


@ti.func
def reflect(wo: vec3, h: vec3) -> vec3:
    """Reflect a direction about a normal.

    Unlike the ray-tracing convention, wo points away from the surface, so the
    result also points away from it.

    Args:
        wo: Direction pointing away from the surface (normalized).
        h: The mirror normal (normalized).

    Returns:
        The reflected direction 2 (wo . h) h - wo.
    """
    return 2.0 * tm.dot(wo, h) * h - wo


@ti.func
def refract(wo: vec3, h: vec3, eta: float, cos_theta_t: float) -> vec3:
    """Refract a direction through a microfacet.

    Args:
        wo: Direction pointing away from the surface on the incident side.
        h: The microfacet normal, on the same side as wo.
        eta: Relative index of refraction (incident side / transmitted side).
        cos_theta_t: Cosine of the transmitted angle, as returned by
            eval_fresnel_dielectric.

    Returns:
        The transmitted direction, pointing away from the surface on the
        opposite side of h.
    """
    return (eta * tm.dot(wo, h) - cos_theta_t) * h - eta * wo


@ti.func
def length_squared(v: vec3) -> float:
    """Squared length of a vector."""
    return tm.dot(v, v)


# =============================================================================
# Sample Warps
# =============================================================================


@ti.func
def sample_disk_concentric(u: vec2) -> vec2:
    """Map a uniform square sample to the unit disk.

    Uses Shirley's concentric mapping, which preserves the stratification of
    the input and has low distortion compared to the polar mapping.

    Args:
        u: Uniform sample in [0, 1)^2.

    Returns:
        A point uniformly distributed on the unit disk.
    """
    p = 2.0 * u - 1.0
    result = vec2(0.0, 0.0)
    if p.x != 0.0 or p.y != 0.0:
        r = 0.0
        phi = 0.0
        if ti.abs(p.x) > ti.abs(p.y):
            r = p.x
            phi = (p.y / p.x) * (tm.pi / 4.0)
        else:
            r = p.y
            phi = tm.pi / 2.0 - (p.x / p.y) * (tm.pi / 4.0)
        result = r * vec2(ti.cos(phi), ti.sin(phi))
    return result


@ti.func
def sample_cosine_hemisphere_concentric(u: vec2):
    """Cosine-weighted hemisphere sampling around +z.

    Projects a concentric disk sample up onto the hemisphere (Malley's method),
    which gives directions with density cos(theta) / pi.

    Args:
        u: Uniform sample in [0, 1)^2.

    Returns:
        A tuple of (direction, pdf) where:
        - direction: Unit vector in the upper hemisphere.
        - pdf: The solid-angle density cos(theta) / pi.
    """
    d = sample_disk_concentric(u)
    z = ti.sqrt(ti.max(0.0, 1.0 - tm.dot(d, d)))
    pdf = z / tm.pi
    return vec3(d.x, d.y, z), pdf


@ti.func
def random_vec4() -> vec4:
    """Draw four independent uniform numbers in [0, 1).

    This is the source of randomness the composite material consumes per
    sample: one number for lobe selection and three for the chosen lobe.
    """
    return vec4(ti.random(float), ti.random(float), ti.random(float), ti.random(float))
