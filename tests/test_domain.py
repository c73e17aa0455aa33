"""Tests for the domain configuration registry."""

import pytest

from pdeinputs.errors import DomainSealed, DuplicateName, InvalidOption, RoleMismatch, UndefinedTerm, UnknownName
from pdeinputs.model.equation import EquationState, TermRole
from pdeinputs.model.properties import UNITY, PropertyType


class TestRegistration:

    def test_unity_is_predefined(self, domain):
        unity = domain.get_property(UNITY)
        assert unity.property_type is PropertyType.ISOTROPIC
        assert unity.evaluate([0.5, 0.5, 0.5], 3.0) == 1.0
        assert domain.property_names() == [UNITY]

    def test_duplicate_property(self, domain):
        first = domain.add_property("conductivity", "anisotropic")
        with pytest.raises(DuplicateName):
            domain.add_property("conductivity", "isotropic")
        assert domain.get_property("conductivity") is first
        assert first.property_type is PropertyType.ANISOTROPIC

    def test_duplicate_unity(self, domain):
        with pytest.raises(DuplicateName):
            domain.add_property(UNITY)

    def test_duplicate_advection_field_and_equation(self, domain):
        domain.add_advection_field("adv_field")
        domain.add_user_equation("AdvDiff", "Potential")
        with pytest.raises(DuplicateName):
            domain.add_advection_field("adv_field")
        with pytest.raises(DuplicateName):
            domain.add_user_equation("AdvDiff", "Other")

    def test_categories_are_separate(self, domain):
        domain.add_property("velocity")
        domain.add_advection_field("velocity")
        assert domain.property_names() == [UNITY, "velocity"]
        assert domain.advection_field_names() == ["velocity"]

    def test_invalid_declarations(self, domain):
        with pytest.raises(InvalidOption):
            domain.add_property("k", "cubic")
        with pytest.raises(InvalidOption):
            domain.add_user_equation("E", "u", var_type="matrix")
        with pytest.raises(InvalidOption):
            domain.add_user_equation("E", "u", default_bc="zero_gradient")
        assert domain.property_names() == [UNITY]
        assert domain.equation_names() == []

    def test_unknown_names(self, domain):
        with pytest.raises(UnknownName):
            domain.get_property("conductivity")
        with pytest.raises(UnknownName):
            domain.get_advection_field("adv_field")
        with pytest.raises(KeyError):
            domain.get_equation("AdvDiff")


class TestLink:

    def test_link_by_names(self, domain):
        equation = domain.add_user_equation("AdvDiff", "Potential")
        domain.add_property("rho.cp").define_by_value(1.0)
        domain.add_advection_field("adv_field").define_by_value("1 0 0")
        domain.link("AdvDiff", "time", "rho.cp")
        domain.link(equation, TermRole.ADVECTION, "adv_field")
        assert equation.time_property.name == "rho.cp"
        assert equation.advection_field.name == "adv_field"
        assert equation.state is EquationState.CONFIGURING

    def test_link_unity(self, domain):
        equation = domain.add_user_equation("E", "u")
        domain.link("E", "time", UNITY)
        assert equation.time_property.evaluate([0.0, 0.0, 0.0]) == 1.0

    def test_link_wrong_category(self, domain):
        domain.add_user_equation("E", "u")
        domain.add_advection_field("adv_field")
        with pytest.raises(RoleMismatch):
            domain.link("E", "diffusion", "adv_field")
        with pytest.raises(RoleMismatch):
            domain.link("E", "advection", UNITY)

    def test_link_unknown(self, domain):
        domain.add_user_equation("E", "u")
        with pytest.raises(UnknownName):
            domain.link("E", "diffusion", "conductivity")
        with pytest.raises(UnknownName):
            domain.link("F", "diffusion", UNITY)


class TestSeal:

    def test_seal_freezes_everything(self, domain):
        domain.add_user_equation("E", "u")
        k = domain.add_property("k")
        k.define_by_value(2.0)
        domain.link("E", "diffusion", "k")
        domain.seal()
        assert domain.is_sealed
        assert domain.get_equation("E").is_sealed
        with pytest.raises(DomainSealed):
            domain.add_property("other")
        with pytest.raises(DomainSealed):
            domain.add_user_equation("F", "v")
        with pytest.raises(DomainSealed):
            k.define_by_value(3.0)
        assert k.evaluate([0.0, 0.0, 0.0]) == 2.0

    def test_unused_undefined_term_is_reported(self, domain, warnings_log):
        domain.add_property("unused")
        domain.seal()
        assert any("unused" in message for message in warnings_log)
        with pytest.raises(DomainSealed):
            domain.get_property("unused").define_by_value(1.0)

    def test_failed_seal_changes_nothing(self, domain):
        domain.add_user_equation("Good", "u")
        domain.add_user_equation("Bad", "v")
        domain.add_property("k")
        domain.link("Bad", "diffusion", "k")
        with pytest.raises(UndefinedTerm):
            domain.seal()
        assert not domain.is_sealed
        assert not domain.get_equation("Good").is_sealed
        domain.get_property("k").define_by_value(1.0)
        domain.seal()
        assert domain.get_equation("Bad").is_sealed

    def test_summary(self, domain):
        domain.add_property("k", "orthotropic")
        domain.add_user_equation("E", "u")
        lines = domain.summary()
        assert lines[0] == "Domain configuration:"
        assert any("'k' (orthotropic, undefined)" in line for line in lines)
        assert any("Equation 'E'" in line for line in lines)
