"""Host-side material description.

MaterialDescription is the Python-scope counterpart of the MaterialData
record consumed by setup_standard_bsdf(). It validates its parameters on
construction and derives the GGX width from the roughness.

Example:
    >>> from src.bsdf.materials.description import MaterialDescription
    >>> glass = MaterialDescription.from_metal_roughness(
    ...     base_color=(1.0, 1.0, 1.0), metallic=0.0, roughness=0.1,
    ...     ior=1.5, specular_transmission=1.0,
    ... )
    >>> round(glass.eta, 4)
    0.6667
"""

from __future__ import annotations

from dataclasses import dataclass

from src.bsdf.core.microfacet import K_MIN_GGX_ALPHA
from src.bsdf.lobes.types import LobeType

# Type alias for RGB triples
Color = tuple[float, float, float]


def _validate_color(name: str, color: Color) -> Color:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}.")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(color[0]), float(color[1]), float(color[2]))


def _validate_unit(name: str, value: float) -> float:
    if value < 0.0 or value > 1.0:
        raise ValueError(f"{name} = {value} is outside [0, 1].")
    return float(value)


@dataclass(frozen=True)
class MaterialDescription:
    """Parameters of one shading point.

    Attributes:
        diffuse: Diffuse albedo (RGB, each component in [0, 1]).
        specular: Specular albedo at normal incidence (RGB, in [0, 1]).
        linear_roughness: Perceptual roughness in [0, 1].
        eta: Relative index of refraction, IOR on the wo side divided by the
            IOR on the transmitted side. Must be positive.
        metallic: Metallic factor in [0, 1].
        specular_transmission: Specular transmission factor in [0, 1].
        transmission: Transmission albedo (RGB, in [0, 1]).
        active_lobes: Lobes the material is allowed to use.
    """

    diffuse: Color = (0.0, 0.0, 0.0)
    specular: Color = (0.04, 0.04, 0.04)
    linear_roughness: float = 0.5
    eta: float = 1.0 / 1.5
    metallic: float = 0.0
    specular_transmission: float = 0.0
    transmission: Color = (1.0, 1.0, 1.0)
    active_lobes: LobeType = LobeType.ALL

    def __post_init__(self) -> None:
        object.__setattr__(self, "diffuse", _validate_color("Diffuse albedo", self.diffuse))
        object.__setattr__(self, "specular", _validate_color("Specular albedo", self.specular))
        object.__setattr__(
            self, "transmission", _validate_color("Transmission albedo", self.transmission)
        )
        object.__setattr__(
            self, "linear_roughness", _validate_unit("Roughness", self.linear_roughness)
        )
        object.__setattr__(self, "metallic", _validate_unit("Metallic", self.metallic))
        object.__setattr__(
            self,
            "specular_transmission",
            _validate_unit("Specular transmission", self.specular_transmission),
        )

        if self.eta <= 0.0:
            raise ValueError(
                f"Relative index of refraction = {self.eta} is not positive. "
                "eta must be > 0 for physically meaningful materials."
            )
        object.__setattr__(self, "eta", float(self.eta))

        if int(self.active_lobes) & ~int(LobeType.ALL):
            raise ValueError(f"Active lobe mask {int(self.active_lobes):#x} has unknown bits.")
        object.__setattr__(self, "active_lobes", LobeType(int(self.active_lobes)))

    @property
    def alpha(self) -> float:
        """GGX width, roughness squared, clamped to K_MIN_GGX_ALPHA."""
        return max(self.linear_roughness * self.linear_roughness, K_MIN_GGX_ALPHA)

    @classmethod
    def from_metal_roughness(
        cls,
        base_color: Color,
        metallic: float = 0.0,
        roughness: float = 0.5,
        ior: float = 1.5,
        specular_transmission: float = 0.0,
        front_facing: bool = True,
        transmission: Color = (1.0, 1.0, 1.0),
        active_lobes: LobeType = LobeType.ALL,
    ) -> MaterialDescription:
        """Build a description from metal/roughness parameters.

        Metals tint the specular reflection with the base color and have no
        diffuse component; dielectrics reflect F0 derived from the IOR:

            F0       = ((1 - ior) / (1 + ior))^2
            diffuse  = base_color * (1 - metallic)
            specular = lerp(F0, base_color, metallic)

        Args:
            base_color: Base color (RGB, each component in [0, 1]).
            metallic: Metallic factor in [0, 1].
            roughness: Perceptual roughness in [0, 1].
            ior: Index of refraction of the material, relative to the outside
                medium. Must be >= 1.0.
            specular_transmission: Specular transmission factor in [0, 1].
            front_facing: True if wo is outside the material.
            transmission: Transmission albedo. Defaults to white.
            active_lobes: Lobes the material is allowed to use.

        Returns:
            The corresponding MaterialDescription.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if ior < 1.0:
            raise ValueError(
                f"Index of refraction = {ior} is less than 1.0. "
                "IOR must be >= 1.0 for physically meaningful materials."
            )
        base = _validate_color("Base color", base_color)
        metallic = _validate_unit("Metallic", metallic)

        f0 = ((1.0 - ior) / (1.0 + ior)) ** 2
        diffuse = tuple(c * (1.0 - metallic) for c in base)
        specular = tuple(f0 + (c - f0) * metallic for c in base)
        eta = 1.0 / ior if front_facing else ior

        return cls(
            diffuse=diffuse,
            specular=specular,
            linear_roughness=roughness,
            eta=eta,
            metallic=metallic,
            specular_transmission=specular_transmission,
            transmission=transmission,
            active_lobes=active_lobes,
        )
