"""Tests for the manufactured advection-diffusion case and the command line."""

import numpy as np
import pytest

from pdeinputs.__main__ import main
from pdeinputs.analysis.entities import PolygonFace
from pdeinputs.cases.advdiff import (
    CONDUCTIVITY,
    EQUATION_NAME,
    SOURCE_TERM_LABEL,
    advection_velocity,
    build_advdiff_domain,
    exact_solution,
    source_term,
)
from pdeinputs.model.bc import BCType
from pdeinputs.model.properties import PropertyType
from pdeinputs.options import QuadratureType


@pytest.fixture
def advdiff(warnings_log):
    domain = build_advdiff_domain(warning_hook=warnings_log.append)
    domain.seal()
    return domain


def numerical_source(point, h=1e-4):
    """-K:Hess(u) + beta . grad(u) + u with central differences."""
    point = np.asarray(point, dtype=float)
    u = lambda p: exact_solution(p, 0.0)
    steps = np.eye(3) * h
    grad = np.array([(u(point + e) - u(point - e)) / (2 * h) for e in steps])
    hess = np.empty((3, 3))
    for i, ei in enumerate(steps):
        for j, ej in enumerate(steps):
            hess[i, j] = (
                u(point + ei + ej) - u(point + ei - ej) - u(point - ei + ej) + u(point - ei - ej)
            ) / (4 * h * h)
    return -np.sum(CONDUCTIVITY * hess) + advection_velocity(point, 0.0) @ grad + u(point)


class TestAdvDiffCase:

    def test_setup(self, advdiff):
        assert advdiff.equation_names() == [EQUATION_NAME]
        assert advdiff.get_property("conductivity").property_type is PropertyType.ANISOTROPIC
        equation = advdiff.get_equation(EQUATION_NAME)
        assert equation.is_sealed
        assert equation.time_property.name == "rho.cp"
        assert equation.advection_field.name == "adv_field"

    @pytest.mark.parametrize("point, time", [([0.0, 0.0, 0.0], 0.0), ([0.3, 0.7, 0.1], 5.0)])
    def test_conductivity_through_diffusion_binding(self, advdiff, point, time):
        equation = advdiff.get_equation(EQUATION_NAME)
        value = equation.get_binding("diffusion").property.evaluate(point, time)
        assert np.array_equal(value, CONDUCTIVITY)

    def test_last_quadrature_wins(self, advdiff, warnings_log):
        source = advdiff.get_equation(EQUATION_NAME).get_source_term(SOURCE_TERM_LABEL)
        assert source.quadrature is QuadratureType.SUBDIV
        assert len(warnings_log) == 1
        assert SOURCE_TERM_LABEL in warnings_log[0]

    def test_dirichlet_value(self, advdiff):
        bc = advdiff.get_equation(EQUATION_NAME).boundary_conditions[0]
        assert bc.bc_type is BCType.DIRICHLET
        expected = 1.0 + np.sin(0.0) * np.sin(np.pi * 0.5) * np.sin(np.pi / 3.0)
        assert bc.evaluate([0.0, 0.0, 0.0], 0.0) == pytest.approx(expected, abs=1e-12)
        assert bc.evaluate([0.5, 0.0, 1.0 / 6.0]) == pytest.approx(2.0, abs=1e-12)

    def test_dirichlet_mean_on_face(self, advdiff):
        bc = advdiff.get_equation(EQUATION_NAME).boundary_conditions[0]
        face = PolygonFace([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]])
        # sin(pi (y + 1/2)) = cos(pi y) averages to zero over the face
        assert bc.mean_value(face, quadrature_type="highest") == pytest.approx(1.0, abs=1e-10)

    @pytest.mark.parametrize("point", [[0.2, 0.3, 0.4], [0.9, 0.1, 0.5], [0.5, 0.5, 0.5]])
    def test_source_term_matches_exact_solution(self, point):
        assert source_term(np.array(point), 0.0) == pytest.approx(numerical_source(point), rel=1e-5, abs=1e-5)


@pytest.mark.usefixtures("restore_package_logger")
class TestCommandLine:

    def test_main_writes_log(self, tmp_path):
        log_file = tmp_path / "run.log"
        main(["--level", "INFO", "--log-file", str(log_file), "--quadrature", "highest"])
        text = log_file.read_text(encoding="utf-8")
        assert "Domain configuration sealed." in text
        assert "highest" in text
        assert "subdiv" in text

    def test_main_rejects_unknown_policy(self):
        with pytest.raises(SystemExit):
            main(["--quadrature", "gauss"])
