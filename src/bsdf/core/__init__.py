"""Core BSDF module.

This module contains the building blocks shared by every lobe:

Components:
    config: Build-time switches read with ti.static() when kernels compile
    sampling: Reflection/refraction operators and warps of uniform samples
    fresnel: Schlick and exact dielectric Fresnel terms
    microfacet: GGX distribution, Smith masking and half-vector sampling
    evaluator: NumPy batch evaluation of the standard material

All directions are expressed in the local shading frame with the normal
along +z.
"""

from .config import (
    BSDFConfig,
    DiffuseBrdf,
    SpecularMasking,
    get_config,
    override_config,
    reset_config,
    set_config,
)
from .fresnel import eval_fresnel_dielectric, eval_fresnel_schlick
from .microfacet import (
    K_MIN_GGX_ALPHA,
    eval_g1_ggx,
    eval_g_over_g1_wo,
    eval_lambda_ggx,
    eval_masking_smith_ggx,
    eval_masking_smith_ggx_correlated,
    eval_masking_smith_ggx_separable,
    eval_ndf_ggx,
    eval_pdf_ggx_half_vector,
    eval_pdf_ggx_ndf,
    eval_pdf_ggx_vndf,
    sample_ggx_half_vector,
    sample_ggx_ndf,
    sample_ggx_vndf,
)
from .sampling import (
    length_squared,
    random_vec4,
    reflect,
    refract,
    sample_cosine_hemisphere_concentric,
    sample_disk_concentric,
)

# Note: evaluator is NOT imported here because it allocates Taichi fields.
# Import directly from src.bsdf.core.evaluator after ti.init().

__all__ = [
    # Config
    "BSDFConfig",
    "DiffuseBrdf",
    "SpecularMasking",
    "get_config",
    "set_config",
    "reset_config",
    "override_config",
    # Fresnel
    "eval_fresnel_schlick",
    "eval_fresnel_dielectric",
    # Microfacet
    "K_MIN_GGX_ALPHA",
    "eval_ndf_ggx",
    "eval_lambda_ggx",
    "eval_g1_ggx",
    "eval_masking_smith_ggx",
    "eval_masking_smith_ggx_separable",
    "eval_masking_smith_ggx_correlated",
    "eval_g_over_g1_wo",
    "eval_pdf_ggx_ndf",
    "eval_pdf_ggx_vndf",
    "eval_pdf_ggx_half_vector",
    "sample_ggx_ndf",
    "sample_ggx_vndf",
    "sample_ggx_half_vector",
    # Sampling
    "reflect",
    "refract",
    "length_squared",
    "sample_disk_concentric",
    "sample_cosine_hemisphere_concentric",
    "random_vec4",
]
