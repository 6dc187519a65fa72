"""Scattering lobes.

Each lobe is a parameter record (ti.dataclass) plus three Taichi functions:

    - eval_*(): BSDF value times |cos(theta_i)|
    - sample_*(): importance sample an incident direction (BSDFSample)
    - eval_pdf_*(): density of the sampled direction

Components:
    types: Lobe-type bits, thresholds and the BSDFSample record
    diffuse: Lambert, Disney and Frostbite diffuse reflection
    specular: GGX microfacet reflection
    transmission: GGX microfacet reflection + refraction (rough dielectric)
"""

from .diffuse import (
    DiffuseReflection,
    eval_diffuse_reflection,
    eval_pdf_diffuse_reflection,
    eval_weight_diffuse,
    eval_weight_disney,
    eval_weight_frostbite,
    eval_weight_lambert,
    sample_diffuse_reflection,
)
from .specular import (
    SpecularReflectionMicrofacet,
    eval_pdf_specular_reflection,
    eval_specular_reflection,
    sample_specular_reflection,
)
from .transmission import (
    SpecularReflectionTransmissionMicrofacet,
    eval_pdf_specular_reflection_transmission,
    eval_specular_reflection_transmission,
    sample_specular_reflection_transmission,
)
from .types import (
    K_MIN_COS_THETA,
    K_MIN_HALF_VECTOR_LENGTH_SQR,
    BSDFSample,
    LobeType,
)

__all__ = [
    # Types
    "BSDFSample",
    "LobeType",
    "K_MIN_COS_THETA",
    "K_MIN_HALF_VECTOR_LENGTH_SQR",
    # Diffuse
    "DiffuseReflection",
    "eval_diffuse_reflection",
    "sample_diffuse_reflection",
    "eval_pdf_diffuse_reflection",
    "eval_weight_diffuse",
    "eval_weight_lambert",
    "eval_weight_disney",
    "eval_weight_frostbite",
    # Specular reflection
    "SpecularReflectionMicrofacet",
    "eval_specular_reflection",
    "sample_specular_reflection",
    "eval_pdf_specular_reflection",
    # Specular reflection + transmission
    "SpecularReflectionTransmissionMicrofacet",
    "eval_specular_reflection_transmission",
    "sample_specular_reflection_transmission",
    "eval_pdf_specular_reflection_transmission",
]
