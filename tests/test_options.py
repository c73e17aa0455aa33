"""Tests for option keyword parsing and equation parameters."""

import math

import pytest

from pdeinputs.errors import EquationSealed, InvalidOption
from pdeinputs.options import (
    EquationParams,
    ExtraPost,
    HodgeAlgo,
    QuadratureType,
    SpaceScheme,
    TimeScheme,
    parse_bool,
    parse_enum,
    parse_float,
    parse_hodge_coef,
    parse_int,
    parse_post,
)


class TestParsers:

    def test_enum_from_keyword(self):
        assert parse_enum(QuadratureType, "Highest", "quadrature") is QuadratureType.HIGHEST
        assert parse_enum(QuadratureType, QuadratureType.BARY, "quadrature") is QuadratureType.BARY

    def test_enum_unknown_keyword(self):
        with pytest.raises(InvalidOption, match="bary, subdiv, higher, highest"):
            parse_enum(QuadratureType, "gauss", "quadrature")

    @pytest.mark.parametrize("text, expected", [("true", True), (" FALSE ", False), (True, True)])
    def test_bool(self, text, expected):
        assert parse_bool(text, "lumping") is expected

    @pytest.mark.parametrize("value", ["yes", 1, "0"])
    def test_bool_rejects_other_values(self, value):
        with pytest.raises(InvalidOption):
            parse_bool(value, "lumping")

    def test_int(self):
        assert parse_int("2500", "itsol_max_iter", minimum=1) == 2500
        with pytest.raises(InvalidOption):
            parse_int("0", "itsol_max_iter", minimum=1)
        with pytest.raises(InvalidOption):
            parse_int(True, "verbosity")
        with pytest.raises(InvalidOption):
            parse_int("2.5", "verbosity")

    def test_float_range(self):
        assert parse_float("0.75", "time_theta", minimum=0.0, maximum=1.0) == 0.75
        for bad in ("1.5", -0.1, "nan", "inf"):
            with pytest.raises(InvalidOption):
                parse_float(bad, "time_theta", minimum=0.0, maximum=1.0)

    def test_hodge_coef(self):
        assert parse_hodge_coef("dga", "hodge_coef") == pytest.approx(1.0 / 3.0)
        assert parse_hodge_coef("sushi", "hodge_coef") == pytest.approx(1.0 / math.sqrt(3.0))
        assert parse_hodge_coef("GCR", "hodge_coef") == 1.0
        assert parse_hodge_coef("1.5", "hodge_coef") == 1.5
        with pytest.raises(InvalidOption):
            parse_hodge_coef("0", "hodge_coef")

    @pytest.mark.parametrize("value, expected", [("-1", -1), ("0", 0), (10, 10)])
    def test_post(self, value, expected):
        assert parse_post(value, "post") == expected

    def test_post_below_never(self):
        with pytest.raises(InvalidOption):
            parse_post(-2, "post")


class TestEquationParams:

    def test_defaults(self):
        params = EquationParams()
        assert params.space_scheme is SpaceScheme.CDO_VB
        assert params.bc_quadrature is QuadratureType.BARY
        assert params.time_theta == 1.0

    def test_set_keyword_options(self):
        params = EquationParams()
        params.set("space_scheme", "cdo_fb")
        params.set("hodge_diff_algo", "wbs")
        params.set("itsol_eps", "1e-10")
        params.set("itsol_resnorm", "false")
        assert params.space_scheme is SpaceScheme.CDO_FB
        assert params.hodge_diff_algo is HodgeAlgo.WBS
        assert params.itsol_eps == 1e-10
        assert params.itsol_resnorm is False

    @pytest.mark.parametrize(
        "scheme, theta",
        [("implicit", 1.0), ("explicit", 0.0), ("crank_nicolson", 0.5)],
    )
    def test_time_scheme_sets_theta(self, scheme, theta):
        params = EquationParams()
        params.set("time_scheme", scheme)
        assert params.time_theta == theta

    def test_time_theta(self):
        params = EquationParams()
        params.set("time_theta", "0.75")
        assert params.time_scheme is TimeScheme.THETA_SCHEME
        assert params.time_theta == 0.75

    @pytest.mark.parametrize("theta", ["1.01", "-0.5"])
    def test_time_theta_out_of_range(self, theta):
        params = EquationParams()
        with pytest.raises(InvalidOption):
            params.set("time_theta", theta)
        assert params.time_theta == 1.0
        assert params.time_scheme is TimeScheme.IMPLICIT

    def test_unknown_key(self):
        with pytest.raises(InvalidOption, match="Unknown option key"):
            EquationParams().set("relaxation", "0.5")

    def test_extra_post_accumulates(self):
        params = EquationParams()
        params.set("post", "peclet")
        params.set("post", "upwind_coef")
        params.set("post", "peclet")
        assert params.post == (ExtraPost.PECLET, ExtraPost.UPWIND_COEF)

    def test_to_dict(self):
        params = EquationParams()
        params.set("verbosity", 2)
        assert params.to_dict()["verbosity"] == 2
        assert "_sealed" not in params.to_dict()

    def test_sealed_params_are_read_only(self):
        params = EquationParams()
        params.set("post", "peclet")
        params.seal()
        assert params.is_sealed
        with pytest.raises(EquationSealed):
            params.set("time_scheme", "explicit")
        with pytest.raises(EquationSealed):
            params.itsol_max_iter = 10
        assert params.time_scheme is TimeScheme.IMPLICIT
        assert params.time_theta == 1.0
        assert params.itsol_max_iter == 2500
        assert params.post == (ExtraPost.PECLET,)
