"""Taichi implementation of a microfacet BSDF engine.

This package evaluates and importance samples physically-based surface
scattering, with support for:
- GGX microfacet distribution, Smith masking and Fresnel terms
- Lambertian, Disney and Frostbite diffuse reflection
- Rough specular reflection and rough dielectric transmission
- A composite material with lobe selection by probability

Subpackages:
    core: Configuration, sampling helpers, microfacet and Fresnel terms,
        and the NumPy batch evaluator
    lobes: Individual scattering lobes and the shared sample record
    materials: Material descriptions and the composite standard material
"""

__version__ = "0.1.0"
