"""Shared records and constants for the BSDF lobes.

Every lobe answers the same three queries:
    - eval(wo, wi): BSDF value times |cos(theta_i)|
    - sample(wo, u): importance sampled wi with its pdf and weight
    - eval_pdf(wo, wi): the density sample() would report for wi

sample() returns a BSDFSample record. A sample with valid == 0 is not an
error; the caller should treat it as a path that contributes nothing.
"""

from enum import IntFlag

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Cosine threshold for every test against the shading normal; several terms
# are singular at exactly grazing angles.
K_MIN_COS_THETA = 1e-6

# Squared length below which an unnormalized half vector is degenerate.
K_MIN_HALF_VECTOR_LENGTH_SQR = 1e-12

# Lobe-type bits, usable inside Taichi kernels
LOBE_NONE = 0
LOBE_DIFFUSE_REFLECTION = 0x1
LOBE_SPECULAR_REFLECTION = 0x2
LOBE_DIFFUSE_TRANSMISSION = 0x4
LOBE_SPECULAR_TRANSMISSION = 0x8
LOBE_ALL = 0xF


class LobeType(IntFlag):
    """Classification of a scattering event.

    Returned with every successful sample so callers can tell reflection from
    transmission, or diffuse from specular, without knowing which lobe
    produced it.
    """

    NONE = LOBE_NONE
    DIFFUSE_REFLECTION = LOBE_DIFFUSE_REFLECTION
    SPECULAR_REFLECTION = LOBE_SPECULAR_REFLECTION
    DIFFUSE_TRANSMISSION = LOBE_DIFFUSE_TRANSMISSION
    SPECULAR_TRANSMISSION = LOBE_SPECULAR_TRANSMISSION

    REFLECTION = LOBE_DIFFUSE_REFLECTION | LOBE_SPECULAR_REFLECTION
    TRANSMISSION = LOBE_DIFFUSE_TRANSMISSION | LOBE_SPECULAR_TRANSMISSION
    DIFFUSE = LOBE_DIFFUSE_REFLECTION | LOBE_DIFFUSE_TRANSMISSION
    SPECULAR = LOBE_SPECULAR_REFLECTION | LOBE_SPECULAR_TRANSMISSION
    ALL = LOBE_ALL


@ti.dataclass
class BSDFSample:
    """Result of sampling a lobe or a material.

    Attributes:
        wi: The sampled incident direction (local frame).
        pdf: Solid-angle density of wi.
        weight: eval(wo, wi) / pdf.
        lobe: LobeType bit of the lobe that produced wi.
        valid: 1 if a direction was produced, 0 otherwise.
    """

    wi: vec3
    pdf: float
    weight: vec3
    lobe: ti.i32
    valid: ti.i32

