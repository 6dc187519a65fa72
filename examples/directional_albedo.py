#!/usr/bin/env python3
"""Print directional albedo tables for the standard material.

This script sets up a material from metal/roughness parameters and estimates
how much energy it scatters for a range of viewing angles and roughness
values. Each entry is the mean sample weight over many draws, which for an
energy-conserving material stays at or below one per channel.

Usage:
    python -m examples.directional_albedo [options]

Options:
    --base-color R G B          Base color (default: 0.8 0.8 0.8)
    --metallic M                Metallic factor (default: 0.0)
    --ior IOR                   Index of refraction (default: 1.5)
    --transmission T            Specular transmission (default: 0.0)
    --diffuse-brdf NAME         lambert, disney or frostbite (default: frostbite)
    --correlated-masking        Use height-correlated Smith masking
    --vndf                      Sample visible normals
    --samples N                 Samples per estimate (default: 200000)
    --verbose                   Log configuration changes and kernel builds

Example:
    python -m examples.directional_albedo --metallic 1.0 --vndf
"""

from __future__ import annotations

import argparse
import logging
import sys

import numpy as np
import taichi as ti

ROUGHNESS_VALUES = (0.05, 0.3, 0.6, 0.9)
THETA_DEGREES = (0.0, 30.0, 60.0, 80.0)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Print directional albedo tables for the standard material.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--base-color",
        type=float,
        nargs=3,
        default=(0.8, 0.8, 0.8),
        metavar=("R", "G", "B"),
        help="Base color (default: 0.8 0.8 0.8)",
    )
    parser.add_argument(
        "--metallic",
        type=float,
        default=0.0,
        help="Metallic factor (default: 0.0)",
    )
    parser.add_argument(
        "--ior",
        type=float,
        default=1.5,
        help="Index of refraction (default: 1.5)",
    )
    parser.add_argument(
        "--transmission",
        type=float,
        default=0.0,
        help="Specular transmission (default: 0.0)",
    )
    parser.add_argument(
        "--diffuse-brdf",
        choices=["lambert", "disney", "frostbite"],
        default="frostbite",
        help="Diffuse model (default: frostbite)",
    )
    parser.add_argument(
        "--correlated-masking",
        action="store_true",
        help="Use height-correlated Smith masking",
    )
    parser.add_argument(
        "--vndf",
        action="store_true",
        help="Sample the distribution of visible normals",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=200000,
        help="Samples per estimate (default: 200000)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log configuration changes and kernel builds",
    )
    return parser.parse_args()


def albedo_table(
    base_color: tuple[float, float, float],
    metallic: float,
    ior: float,
    transmission: float,
    num_samples: int,
) -> np.ndarray:
    """Estimate the directional albedo over roughness and viewing angle.

    Args:
        base_color: Base color (RGB).
        metallic: Metallic factor in [0, 1].
        ior: Index of refraction (>= 1).
        transmission: Specular transmission factor in [0, 1].
        num_samples: Number of samples per estimate.

    Returns:
        Array of shape (len(ROUGHNESS_VALUES), len(THETA_DEGREES), 3).
    """
    # Lazy imports to allow Taichi initialization first
    from src.bsdf.core.evaluator import estimate_directional_albedo, setup_material
    from src.bsdf.materials.description import MaterialDescription

    table = np.zeros((len(ROUGHNESS_VALUES), len(THETA_DEGREES), 3))
    for i, roughness in enumerate(ROUGHNESS_VALUES):
        setup_material(
            MaterialDescription.from_metal_roughness(
                base_color=base_color,
                metallic=metallic,
                roughness=roughness,
                ior=ior,
                specular_transmission=transmission,
            )
        )
        for j, theta in enumerate(np.radians(THETA_DEGREES)):
            wo = (np.sin(theta), 0.0, np.cos(theta))
            table[i, j] = estimate_directional_albedo(wo, num_samples=num_samples)
    return table


def print_table(table: np.ndarray) -> None:
    """Print one row per roughness value, one RGB cell per viewing angle."""
    columns = [f"theta={t:.0f}" for t in THETA_DEGREES]
    print("roughness  " + "".join(f"{c:<21}" for c in columns))
    for roughness, row in zip(ROUGHNESS_VALUES, table):
        cells = "".join(f"{r:.3f} {g:.3f} {b:.3f}  " for r, g, b in row)
        print(f"{roughness:<9.2f}  {cells}")


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    ti.init(arch=ti.cpu, default_fp=ti.f64)

    from src.bsdf.core import config
    from src.bsdf.core.config import BSDFConfig, DiffuseBrdf, SpecularMasking

    try:
        config.set_config(
            BSDFConfig(
                diffuse_brdf=DiffuseBrdf[args.diffuse_brdf.upper()],
                specular_masking=(
                    SpecularMasking.SMITH_GGX_CORRELATED
                    if args.correlated_masking
                    else SpecularMasking.SMITH_GGX_SEPARABLE
                ),
                enable_vndf_sampling=args.vndf,
            )
        )
        table = albedo_table(
            base_color=tuple(args.base_color),
            metallic=args.metallic,
            ior=args.ior,
            transmission=args.transmission,
            num_samples=args.samples,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_table(table)
    return 0


if __name__ == "__main__":
    sys.exit(main())
