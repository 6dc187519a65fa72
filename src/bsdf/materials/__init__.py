"""Materials module.

Components:
    description: Validated host-side material parameters
    standard: Composite material combining the diffuse, specular and
        rough dielectric lobes
"""

from .description import MaterialDescription
from .standard import (
    MaterialData,
    StandardBSDF,
    eval_pdf_standard_bsdf,
    eval_standard_bsdf,
    eval_standard_bsdf_lobes,
    sample_standard_bsdf,
    setup_standard_bsdf,
)

__all__ = [
    "MaterialDescription",
    "MaterialData",
    "StandardBSDF",
    "setup_standard_bsdf",
    "eval_standard_bsdf",
    "eval_pdf_standard_bsdf",
    "sample_standard_bsdf",
    "eval_standard_bsdf_lobes",
]
