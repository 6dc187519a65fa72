"""Unit tests for the diffuse reflection lobe.

Tests cover:
- Lambertian value (albedo / pi) and sample weight (albedo)
- Reciprocity of every diffuse model
- Sample pdf / weight consistency with eval and eval_pdf
- Energy conservation over the hemisphere
- Grazing and back-facing directions
"""

import math

import pytest
import taichi as ti

MODELS = ["LAMBERT", "DISNEY", "FROSTBITE"]


def _eval_pair(albedo, roughness, wo, wi):
    """Evaluate eval() and eval_pdf() for one direction pair."""
    from src.bsdf.lobes.diffuse import (
        DiffuseReflection,
        eval_diffuse_reflection,
        eval_pdf_diffuse_reflection,
    )

    wo_x, wo_y, wo_z = wo
    wi_x, wi_y, wi_z = wi
    value = ti.Vector.field(3, dtype=float, shape=())
    pdf = ti.field(dtype=float, shape=())

    @ti.kernel
    def test_kernel():
        lobe = DiffuseReflection(albedo=ti.math.vec3(albedo, albedo, albedo), roughness=roughness)
        wo_v = ti.math.vec3(wo_x, wo_y, wo_z)
        wi_v = ti.math.vec3(wi_x, wi_y, wi_z)
        value[None] = eval_diffuse_reflection(lobe, wo_v, wi_v)
        pdf[None] = eval_pdf_diffuse_reflection(lobe, wo_v, wi_v)

    test_kernel()
    return value[None][0], pdf[None]


def _sample_stats(albedo, roughness, wo, n=20000):
    """Draw n samples and compare them against eval() and eval_pdf().

    Returns:
        Dict with the number of valid samples, the largest relative weight and
        pdf errors, and the mean weight (the directional albedo estimate).
    """
    from src.bsdf.lobes.diffuse import (
        DiffuseReflection,
        eval_diffuse_reflection,
        eval_pdf_diffuse_reflection,
        sample_diffuse_reflection,
    )
    from src.bsdf.lobes.types import LOBE_DIFFUSE_REFLECTION

    wo_x, wo_y, wo_z = wo
    valid = ti.field(dtype=ti.i32, shape=())
    wrong_lobe = ti.field(dtype=ti.i32, shape=())
    nonfinite = ti.field(dtype=ti.i32, shape=())
    weight_err = ti.field(dtype=float, shape=())
    pdf_err = ti.field(dtype=float, shape=())
    weight_sum = ti.field(dtype=float, shape=())

    @ti.kernel
    def test_kernel():
        lobe = DiffuseReflection(albedo=ti.math.vec3(albedo, albedo, albedo), roughness=roughness)
        wo_v = ti.math.normalize(ti.math.vec3(wo_x, wo_y, wo_z))
        for _ in range(n):
            s = sample_diffuse_reflection(
                lobe, wo_v, ti.math.vec2(ti.random(float), ti.random(float))
            )
            if ti.math.isinf(s.pdf) or ti.math.isnan(s.pdf) or ti.math.isinf(s.weight.x):
                nonfinite[None] += 1
            if s.valid == 1:
                valid[None] += 1
                if s.lobe != LOBE_DIFFUSE_REFLECTION:
                    wrong_lobe[None] += 1
                f = eval_diffuse_reflection(lobe, wo_v, s.wi)
                p = eval_pdf_diffuse_reflection(lobe, wo_v, s.wi)
                ti.atomic_max(weight_err[None], ti.abs(s.weight.x - f.x / p) / ti.max(f.x / p, 1e-12))
                ti.atomic_max(pdf_err[None], ti.abs(s.pdf - p) / p)
                weight_sum[None] += s.weight.x

    test_kernel()
    return {
        "valid": valid[None],
        "wrong_lobe": wrong_lobe[None],
        "nonfinite": nonfinite[None],
        "weight_err": weight_err[None],
        "pdf_err": pdf_err[None],
        "albedo": weight_sum[None] / n,
    }


class TestLambert:
    """Tests for the Lambertian model."""

    def test_value_at_normal(self):
        """f cos = albedo / pi at normal incidence."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        with config.override_config(diffuse_brdf=DiffuseBrdf.LAMBERT):
            value, pdf = _eval_pair(0.8, 0.5, (0.0, 0.0, 1.0), (0.0, 0.0, 1.0))
        assert value == pytest.approx(0.8 / math.pi, rel=1e-12)
        assert pdf == pytest.approx(1.0 / math.pi, rel=1e-12)

    def test_weight_equals_albedo(self):
        """Cosine sampling cancels the Lambertian BRDF exactly."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        with config.override_config(diffuse_brdf=DiffuseBrdf.LAMBERT):
            stats = _sample_stats(0.6, 0.5, (0.3, 0.0, 0.9))
        assert stats["valid"] == 20000
        assert stats["albedo"] == pytest.approx(0.6, abs=1e-9)


class TestDiffuseModels:
    """Tests shared by all diffuse models."""

    @pytest.mark.parametrize("model", MODELS)
    def test_reciprocity(self, model):
        """f(wo, wi) = f(wi, wo)."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        a = (0.6, 0.0, 0.8)
        b = (0.0, 0.28, 0.96)
        with config.override_config(diffuse_brdf=DiffuseBrdf[model]):
            f_ab, _ = _eval_pair(0.7, 0.6, a, b)
            f_ba, _ = _eval_pair(0.7, 0.6, b, a)
        assert f_ab / b[2] == pytest.approx(f_ba / a[2], rel=1e-9)

    @pytest.mark.parametrize("model", MODELS)
    @pytest.mark.parametrize("roughness", [0.01, 0.3, 0.9])
    def test_sample_consistency(self, model, roughness):
        """Sample pdf equals eval_pdf and weight equals eval / pdf."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        with config.override_config(diffuse_brdf=DiffuseBrdf[model]):
            stats = _sample_stats(0.8, roughness, (0.5, 0.2, 0.8))
        assert stats["valid"] > 19900
        assert stats["wrong_lobe"] == 0
        assert stats["weight_err"] < 1e-4
        assert stats["pdf_err"] < 1e-9

    @pytest.mark.parametrize(
        "model,roughness",
        [
            ("LAMBERT", 0.01),
            ("LAMBERT", 0.3),
            ("LAMBERT", 0.9),
            ("DISNEY", 0.01),
            ("FROSTBITE", 0.01),
            ("FROSTBITE", 0.3),
            ("FROSTBITE", 0.9),
        ],
    )
    def test_energy_bound(self, model, roughness):
        """Directional albedo does not exceed the diffuse albedo."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        albedo = 0.8
        with config.override_config(diffuse_brdf=DiffuseBrdf[model]):
            for wo in [(0.0, 0.0, 1.0), (0.6, 0.0, 0.8), (0.95, 0.0, 0.3)]:
                stats = _sample_stats(albedo, roughness, wo, n=50000)
                assert 0.0 <= stats["albedo"] <= albedo * 1.01

    def test_disney_energy_at_normal_incidence(self):
        """Disney stays within the albedo for moderate roughness at normal incidence."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        with config.override_config(diffuse_brdf=DiffuseBrdf.DISNEY):
            stats = _sample_stats(0.8, 0.3, (0.0, 0.0, 1.0), n=50000)
        assert 0.0 <= stats["albedo"] <= 0.8 * 1.01

    @pytest.mark.parametrize("model", MODELS)
    def test_grazing_and_back_facing(self, model):
        """Directions at or below the threshold give exact zeros."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        up = (0.0, 0.0, 1.0)
        with config.override_config(diffuse_brdf=DiffuseBrdf[model]):
            for z in [-1.0, -1e-7, 0.0, 1e-7]:
                other = (math.sqrt(1.0 - z * z), 0.0, z)
                assert _eval_pair(0.8, 0.5, up, other) == (0.0, 0.0)
                assert _eval_pair(0.8, 0.5, other, up) == (0.0, 0.0)

    @pytest.mark.parametrize("model", MODELS)
    @pytest.mark.parametrize("z", [-1.0, -0.5, -1e-7, 0.0, 1e-7])
    def test_sample_at_or_below_surface_is_invalid(self, model, z):
        """wo at or below the grazing threshold never produces a sample."""
        from src.bsdf.core import config
        from src.bsdf.core.config import DiffuseBrdf

        wo = (math.sqrt(1.0 - z * z), 0.0, z)
        with config.override_config(diffuse_brdf=DiffuseBrdf[model]):
            stats = _sample_stats(0.8, 0.5, wo, n=1000)
        assert stats["valid"] == 0
        assert stats["nonfinite"] == 0
