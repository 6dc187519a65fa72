"""Unit tests for the GGX microfacet module.

Tests cover:
- NDF value at the normal and below the surface
- NDF normalization (projected area integrates to one)
- Smith Lambda / G1 / masking identities
- NDF and VNDF half-vector sampling densities
"""

import math

import pytest
import taichi as ti


def _scalar(func, *args):
    """Evaluate a scalar @ti.func of float arguments in a kernel."""
    result = ti.field(dtype=float, shape=())
    n_args = len(args)

    if n_args == 2:

        @ti.kernel
        def test_kernel(a: float, b: float):
            result[None] = func(a, b)

        test_kernel(*args)
    else:

        @ti.kernel
        def test_kernel(a: float, b: float, c: float):
            result[None] = func(a, b, c)

        test_kernel(*args)
    return result[None]


class TestNdf:
    """Tests for eval_ndf_ggx()."""

    @pytest.mark.parametrize("alpha", [0.01, 0.25, 0.8])
    def test_value_at_normal(self, alpha):
        """D(n) = 1 / (pi alpha^2)."""
        from src.bsdf.core.microfacet import eval_ndf_ggx

        assert _scalar(eval_ndf_ggx, alpha, 1.0) == pytest.approx(
            1.0 / (math.pi * alpha * alpha), rel=1e-9
        )

    def test_zero_below_surface(self):
        from src.bsdf.core.microfacet import eval_ndf_ggx

        assert _scalar(eval_ndf_ggx, 0.5, 0.0) == 0.0
        assert _scalar(eval_ndf_ggx, 0.5, -0.3) == 0.0

    @pytest.mark.parametrize("alpha", [0.3, 0.7])
    def test_projected_area_normalization(self, alpha):
        """Integral of D(h) cos(theta_h) over the hemisphere is one."""
        from src.bsdf.core.microfacet import eval_ndf_ggx

        n = 200000
        total = ti.field(dtype=float, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(n):
                # Uniform hemisphere, pdf = 1 / (2 pi)
                cos_theta = ti.random(float)
                total[None] += eval_ndf_ggx(alpha, cos_theta) * cos_theta * 2.0 * ti.math.pi

        test_kernel()
        assert total[None] / n == pytest.approx(1.0, rel=0.03)


class TestMasking:
    """Tests for Lambda, G1 and the Smith masking terms."""

    def test_lambda_and_g1_at_normal(self):
        from src.bsdf.core.microfacet import eval_g1_ggx, eval_lambda_ggx

        assert _scalar(eval_lambda_ggx, 0.25, 1.0) == pytest.approx(0.0, abs=1e-12)
        assert _scalar(eval_g1_ggx, 0.25, 1.0) == pytest.approx(1.0, abs=1e-12)

    @pytest.mark.parametrize("cos_theta", [0.9, 0.5, 0.1])
    def test_g1_equals_one_over_one_plus_lambda(self, cos_theta):
        from src.bsdf.core.microfacet import eval_g1_ggx, eval_lambda_ggx

        alpha_sqr = 0.3 * 0.3
        lam = _scalar(eval_lambda_ggx, alpha_sqr, cos_theta)
        g1 = _scalar(eval_g1_ggx, alpha_sqr, cos_theta)
        assert g1 == pytest.approx(1.0 / (1.0 + lam), rel=1e-12)
        assert 0.0 < g1 <= 1.0

    def test_separable_is_product_of_g1(self):
        from src.bsdf.core.microfacet import eval_g1_ggx, eval_masking_smith_ggx_separable

        alpha = 0.4
        g = _scalar(eval_masking_smith_ggx_separable, alpha, 0.7, 0.3)
        g1_o = _scalar(eval_g1_ggx, alpha * alpha, 0.7)
        g1_i = _scalar(eval_g1_ggx, alpha * alpha, 0.3)
        assert g == pytest.approx(g1_o * g1_i, rel=1e-12)

    def test_correlated_at_least_separable(self):
        from src.bsdf.core.microfacet import (
            eval_masking_smith_ggx_correlated,
            eval_masking_smith_ggx_separable,
        )

        for cos_o, cos_i in [(0.9, 0.9), (0.5, 0.2), (0.1, 0.8)]:
            separable = _scalar(eval_masking_smith_ggx_separable, 0.5, cos_o, cos_i)
            correlated = _scalar(eval_masking_smith_ggx_correlated, 0.5, cos_o, cos_i)
            assert separable <= correlated <= 1.0

    @pytest.mark.parametrize("cos_o,cos_i", [(0.0, 0.5), (0.5, 0.0), (-0.2, 0.5), (0.5, -1.0)])
    def test_zero_below_surface(self, cos_o, cos_i):
        from src.bsdf.core.microfacet import (
            eval_masking_smith_ggx_correlated,
            eval_masking_smith_ggx_separable,
        )

        assert _scalar(eval_masking_smith_ggx_separable, 0.5, cos_o, cos_i) == 0.0
        assert _scalar(eval_masking_smith_ggx_correlated, 0.5, cos_o, cos_i) == 0.0

    @pytest.mark.parametrize("correlated", [False, True])
    def test_g_over_g1(self, correlated):
        """eval_g_over_g1_wo() equals G / G1(wo) for the configured masking."""
        from src.bsdf.core import config
        from src.bsdf.core.config import SpecularMasking
        from src.bsdf.core.microfacet import (
            eval_g1_ggx,
            eval_g_over_g1_wo,
            eval_masking_smith_ggx,
        )

        masking = (
            SpecularMasking.SMITH_GGX_CORRELATED
            if correlated
            else SpecularMasking.SMITH_GGX_SEPARABLE
        )
        alpha = 0.6
        with config.override_config(specular_masking=masking):
            ratio = _scalar(eval_g_over_g1_wo, alpha, 0.4, 0.8)
            g = _scalar(eval_masking_smith_ggx, alpha, 0.4, 0.8)
        g1 = _scalar(eval_g1_ggx, alpha * alpha, 0.4)
        assert ratio == pytest.approx(g / g1, rel=1e-12)


class TestHalfVectorSampling:
    """Tests for NDF and VNDF half-vector sampling."""

    def test_ndf_sample_pdf_matches_eval(self):
        """The density reported by sample_ggx_ndf() is D(h) cos(theta_h)."""
        from src.bsdf.core.microfacet import eval_pdf_ggx_ndf, sample_ggx_ndf

        n = 10000
        alpha = 0.35
        max_err = ti.field(dtype=float, shape=())
        below = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(n):
                h, pdf = sample_ggx_ndf(alpha, ti.math.vec2(ti.random(float), ti.random(float)))
                expected = eval_pdf_ggx_ndf(alpha, h.z)
                ti.atomic_max(max_err[None], ti.abs(pdf - expected) / ti.max(expected, 1e-12))
                if h.z <= 0.0:
                    below[None] += 1

        test_kernel()
        assert max_err[None] < 1e-9
        assert below[None] == 0

    @pytest.mark.parametrize("theta_deg", [0.0, 45.0, 80.0])
    def test_vndf_sample_pdf_matches_eval(self, theta_deg):
        """VNDF samples face wo and report G1 D (wo . h) / wo.z."""
        from src.bsdf.core.microfacet import eval_pdf_ggx_vndf, sample_ggx_vndf

        n = 10000
        alpha = 0.35
        theta = math.radians(theta_deg)
        max_err = ti.field(dtype=float, shape=())
        back_facing = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            wo = ti.math.vec3(ti.sin(theta), 0.0, ti.cos(theta))
            for _ in range(n):
                h, pdf = sample_ggx_vndf(alpha, wo, ti.math.vec2(ti.random(float), ti.random(float)))
                expected = eval_pdf_ggx_vndf(alpha, wo, h)
                ti.atomic_max(max_err[None], ti.abs(pdf - expected) / ti.max(expected, 1e-12))
                if ti.math.dot(wo, h) < -1e-9:
                    back_facing[None] += 1

        test_kernel()
        assert max_err[None] < 1e-9
        assert back_facing[None] == 0

    def test_vndf_density_integrates_to_one(self):
        """Integral of the VNDF over the hemisphere is one.

        Estimated with uniform hemisphere samples, pdf = 1 / (2 pi).
        """
        from src.bsdf.core.microfacet import eval_pdf_ggx_vndf

        n = 100000
        alpha = 0.5
        total = ti.field(dtype=float, shape=())

        @ti.kernel
        def test_kernel():
            wo = ti.math.normalize(ti.math.vec3(0.6, 0.2, 0.7))
            for _ in range(n):
                cos_theta = ti.random(float)
                sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
                phi = 2.0 * ti.math.pi * ti.random(float)
                h = ti.math.vec3(sin_theta * ti.cos(phi), sin_theta * ti.sin(phi), cos_theta)
                total[None] += eval_pdf_ggx_vndf(alpha, wo, h) * 2.0 * ti.math.pi

        test_kernel()
        assert total[None] / n == pytest.approx(1.0, rel=0.02)

    def test_configured_strategy_dispatch(self):
        """sample_ggx_half_vector() follows enable_vndf_sampling."""
        from src.bsdf.core import config
        from src.bsdf.core.microfacet import (
            eval_pdf_ggx_half_vector,
            eval_pdf_ggx_ndf,
            eval_pdf_ggx_vndf,
            sample_ggx_half_vector,
        )

        result = ti.field(dtype=float, shape=4)

        def run():
            @ti.kernel
            def test_kernel():
                alpha = 0.4
                wo = ti.math.normalize(ti.math.vec3(0.5, 0.0, 0.8))
                h, pdf = sample_ggx_half_vector(alpha, wo, ti.math.vec2(0.3, 0.6))
                result[0] = pdf
                result[1] = eval_pdf_ggx_half_vector(alpha, wo, h)
                result[2] = eval_pdf_ggx_ndf(alpha, h.z)
                result[3] = eval_pdf_ggx_vndf(alpha, wo, h)

            test_kernel()
            return [result[i] for i in range(4)]

        ndf = run()
        assert ndf[0] == pytest.approx(ndf[1], rel=1e-12)
        assert ndf[0] == pytest.approx(ndf[2], rel=1e-12)

        with config.override_config(enable_vndf_sampling=True):
            vndf = run()
        assert vndf[0] == pytest.approx(vndf[1], rel=1e-12)
        assert vndf[0] == pytest.approx(vndf[3], rel=1e-12)
