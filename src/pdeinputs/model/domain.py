"""
Domain Configuration
====================
Top-level registry of the setup: properties, advection fields and user
equations, each looked up by a unique name within its category.

The registry is populated once, single-threaded, during setup. :meth:`seal`
ends the setup; afterwards everything is read-only and may be evaluated
concurrently by the assembly collaborator.
"""
from __future__ import annotations

import logging
from typing import Optional

from pdeinputs.errors import DomainSealed, DuplicateName, RoleMismatch, UnknownName
from pdeinputs.model.advection import AdvectionField
from pdeinputs.model.bc import DefaultBC
from pdeinputs.model.equation import Binding, Equation, TermRole, VariableType
from pdeinputs.model.properties import UNITY, Property, PropertyType
from pdeinputs.model.terms import WarningHook, check_name, emit_warning
from pdeinputs.options import parse_enum

logger = logging.getLogger(__name__)


class DomainConfiguration:
    """
    Registry of named properties, advection fields and equations.

    A property named "unity" (isotropic, equal to 1) is always available.

    Args:
        warning_hook: Receives non-fatal setup warnings from the domain, its
            terms and equations. Defaults to ``logger.warning``.
    """

    def __init__(self, warning_hook: Optional[WarningHook] = None) -> None:
        self.warning_hook = warning_hook
        self._properties: dict[str, Property] = {}
        self._advection_fields: dict[str, AdvectionField] = {}
        self._equations: dict[str, Equation] = {}
        self._sealed = False
        self._init_defaults()

    def _init_defaults(self) -> None:
        unity = self.add_property(UNITY, PropertyType.ISOTROPIC)
        unity.define_by_value(1.0)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(properties={len(self._properties)}, "
            f"advection_fields={len(self._advection_fields)}, equations={len(self._equations)}, "
            f"sealed={self._sealed})"
        )

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def _check_mutable(self) -> None:
        if self._sealed:
            raise DomainSealed("The domain configuration is sealed; no further registration is allowed.")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add_property(self, name: str, property_type: PropertyType | str = PropertyType.ISOTROPIC) -> Property:
        """
        Register a new (still undefined) property.

        Raises:
            DomainSealed, DuplicateName, InvalidOption.
        """
        self._check_mutable()
        check_name(name, "property")
        if name in self._properties:
            raise DuplicateName(f"A property named '{name}' already exists.")
        pty = Property(name, parse_enum(PropertyType, property_type, "property_type"), self.warning_hook)
        self._properties[name] = pty
        logger.info(f"Property '{name}' added ({pty.property_type}).")
        return pty

    def add_advection_field(self, name: str) -> AdvectionField:
        """
        Register a new (still undefined) advection field.

        Raises:
            DomainSealed, DuplicateName, InvalidOption.
        """
        self._check_mutable()
        check_name(name, "advection field")
        if name in self._advection_fields:
            raise DuplicateName(f"An advection field named '{name}' already exists.")
        field = AdvectionField(name, self.warning_hook)
        self._advection_fields[name] = field
        logger.info(f"Advection field '{name}' added.")
        return field

    def add_user_equation(
        self,
        name: str,
        field_name: str,
        var_type: VariableType | str = VariableType.SCALAR,
        default_bc: DefaultBC | str = DefaultBC.ZERO_VALUE,
    ) -> Equation:
        """
        Register a new user equation.

        Args:
            name: Equation name.
            field_name: Name of the associated unknown field.
            var_type: "scalar", "vector" or "tensor".
            default_bc: "zero_value" or "zero_flux".

        Raises:
            DomainSealed, DuplicateName, InvalidOption.
        """
        self._check_mutable()
        check_name(name, "equation")
        if name in self._equations:
            raise DuplicateName(f"An equation named '{name}' already exists.")
        equation = Equation(name, field_name, var_type, default_bc, warning_hook=self.warning_hook)
        self._equations[name] = equation
        logger.info(f"Equation '{name}' added (field '{field_name}', {equation.var_type}).")
        return equation

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get_property(self, name: str) -> Property:
        try:
            return self._properties[name]
        except KeyError:
            raise UnknownName(f"No property named '{name}'.") from None

    def get_advection_field(self, name: str) -> AdvectionField:
        try:
            return self._advection_fields[name]
        except KeyError:
            raise UnknownName(f"No advection field named '{name}'.") from None

    def get_equation(self, name: str) -> Equation:
        try:
            return self._equations[name]
        except KeyError:
            raise UnknownName(f"No equation named '{name}'.") from None

    def property_names(self) -> list[str]:
        return list(self._properties.keys())

    def advection_field_names(self) -> list[str]:
        return list(self._advection_fields.keys())

    def equation_names(self) -> list[str]:
        return list(self._equations.keys())

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------
    def _resolve_term(self, role: TermRole, term: str) -> Property | AdvectionField:
        expected, other = (
            (self._advection_fields, self._properties)
            if role is TermRole.ADVECTION
            else (self._properties, self._advection_fields)
        )
        if term in expected:
            return expected[term]
        if term in other:
            raise RoleMismatch(f"'{term}' cannot be linked to the {role} term of an equation.")
        raise UnknownName(f"No property or advection field named '{term}'.")

    def link(
        self,
        equation: Equation | str,
        role: TermRole | str,
        term: Property | AdvectionField | str,
    ) -> Binding:
        """
        Bind a term to a role of an equation; both may be given by name.

        Raises:
            EquationSealed, UnknownName, InvalidOption, RoleMismatch.
        """
        eq = self.get_equation(equation) if isinstance(equation, str) else equation
        term_role = parse_enum(TermRole, role, "role")
        resolved = self._resolve_term(term_role, term) if isinstance(term, str) else term
        return eq.link(term_role, resolved)

    # ------------------------------------------------------------------
    # Sealing
    # ------------------------------------------------------------------
    def seal(self) -> None:
        """
        End the setup: seal every equation and freeze every defined term.

        Nothing is sealed if one equation fails validation.

        Raises:
            UndefinedTerm: An equation refers to an undefined term.
        """
        if self._sealed:
            return
        for equation in self._equations.values():
            equation.validate()
        for equation in self._equations.values():
            equation.seal()
        for term in [*self._properties.values(), *self._advection_fields.values()]:
            if not term.is_defined:
                emit_warning(self.warning_hook, f"{term.CATEGORY.capitalize()} '{term.name}' is never defined.")
            term.seal(require_definition=False)
        self._sealed = True
        logger.info("Domain configuration sealed.")
        for line in self.summary():
            logger.info(line)

    def summary(self) -> list[str]:
        """Description of the whole setup, one line per item."""
        lines = ["Domain configuration:"]
        for pty in self._properties.values():
            definition = pty.definition.value if pty.definition else "undefined"
            lines.append(f"  property        '{pty.name}' ({pty.property_type}, {definition})")
        for field in self._advection_fields.values():
            definition = field.definition.value if field.definition else "undefined"
            lines.append(f"  advection field '{field.name}' ({definition})")
        for equation in self._equations.values():
            lines.extend(f"  {line}" for line in equation.summary())
        return lines
