"""Fresnel reflectance functions.

Two approximations are provided:
    - Schlick's polynomial, used with a per-channel F0 by the diffuse models
      and the specular reflection lobe.
    - The exact unpolarized dielectric Fresnel equations, used by the
      reflection/transmission lobe to split energy between the two branches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.bsdf.core.fresnel import eval_fresnel_dielectric
    >>> # Use within a Taichi kernel:
    >>> # f, cos_theta_t = eval_fresnel_dielectric(1.0 / 1.5, wo_dot_h)
"""

import taichi as ti


@ti.func
def eval_fresnel_schlick(f0, f90, cos_theta: float):
    """Evaluate Schlick's Fresnel approximation.

    Works component-wise, so f0 and f90 can be scalars or RGB vectors.

    Args:
        f0: Reflectance at normal incidence.
        f90: Reflectance at grazing incidence.
        cos_theta: Cosine of the angle with the (micro)normal.

    Returns:
        f0 + (f90 - f0) * (1 - cos_theta)^5
    """
    return f0 + (f90 - f0) * ti.max(1.0 - cos_theta, 0.0) ** 5


@ti.func
def eval_fresnel_dielectric(eta: float, cos_theta_i: float):
    """Evaluate the Fresnel reflectance of a dielectric interface.

    A negative cosine means the direction is on the far side of the
    interface, in which case the relative IOR is inverted.

    Total internal reflection happens when sin^2(theta_t) reaches 1. The
    refracted cosine is undefined there; it is reported as 0 together with a
    reflectance of 1, so the transmission branch can never be chosen.

    Args:
        eta: Relative index of refraction (incident side / transmitted side).
        cos_theta_i: Cosine of the incident angle with the (micro)normal.

    Returns:
        A tuple of (reflectance, cos_theta_t) where:
        - reflectance: Fraction of light reflected, in [0, 1].
        - cos_theta_t: Cosine of the refracted angle (positive), or 0 under
          total internal reflection.
    """
    e = eta
    cos_i = cos_theta_i
    if cos_i < 0.0:
        e = 1.0 / e
        cos_i = -cos_i

    sin2_t = e * e * (1.0 - cos_i * cos_i)

    reflectance = 1.0
    cos_theta_t = 0.0
    if sin2_t < 1.0:
        cos_theta_t = ti.sqrt(1.0 - sin2_t)
        rs = (e * cos_i - cos_theta_t) / (e * cos_i + cos_theta_t)
        rp = (e * cos_theta_t - cos_i) / (e * cos_theta_t + cos_i)
        reflectance = 0.5 * (rs * rs + rp * rp)

    return reflectance, cos_theta_t
