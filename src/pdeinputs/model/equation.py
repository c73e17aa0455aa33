"""
Equations
=========
A user equation collects boundary conditions, source terms and reaction terms,
and binds material properties / an advection field to its time, diffusion and
advection roles.

Lifecycle: ``declared`` (name reserved) -> ``configuring`` (terms attached)
-> ``sealed`` (handed to the assembly collaborator, read-only).
Every mutating call validates completely before changing anything.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from pdeinputs.analysis.evaluators import Arity
from pdeinputs.errors import DuplicateName, EquationSealed, InvalidOption, RoleMismatch, ShapeMismatch, UnknownName
from pdeinputs.model.advection import AdvectionField
from pdeinputs.model.bc import BC_DEFINITIONS, ROBIN_COEFFICIENTS, BCType, BoundaryCondition, DefaultBC
from pdeinputs.model.properties import Property, PropertyType
from pdeinputs.model.reaction import ReactionTerm
from pdeinputs.model.source_terms import MeshLocation, SourceTerm
from pdeinputs.model.terms import WarningHook, check_name, emit_warning, make_evaluator
from pdeinputs.options import (
    REACTION_PARSERS,
    SOURCE_TERM_PARSERS,
    EquationParams,
    ReactionKey,
    SourceTermKey,
    parse_enum,
    parse_key,
)

if TYPE_CHECKING:
    from pdeinputs.analysis.entities import MeshEntity
    from pdeinputs.analysis.evaluators import DefinitionKind, Value

logger = logging.getLogger(__name__)


class EquationState(StrEnum):
    DECLARED = "declared"
    CONFIGURING = "configuring"
    SEALED = "sealed"


class TermRole(StrEnum):
    TIME = "time"
    DIFFUSION = "diffusion"
    ADVECTION = "advection"


class VariableType(StrEnum):
    SCALAR = "scalar"
    VECTOR = "vector"
    TENSOR = "tensor"


VARIABLE_ARITY: dict[VariableType, Arity] = {
    VariableType.SCALAR: Arity.SCALAR,
    VariableType.VECTOR: Arity.VECTOR,
    VariableType.TENSOR: Arity.TENSOR,
}


@dataclass(frozen=True)
class PropertyBinding:
    """A property bound to the time or diffusion role."""
    role: TermRole
    property: Property

    @property
    def term(self) -> Property:
        return self.property


@dataclass(frozen=True)
class AdvectionBinding:
    """The advection field bound to the advection role."""
    field: AdvectionField
    role: TermRole = TermRole.ADVECTION

    @property
    def term(self) -> AdvectionField:
        return self.field


Binding = Union[PropertyBinding, AdvectionBinding]

# Term kind accepted by each role
ROLE_TERM_TYPES: dict[TermRole, type] = {
    TermRole.TIME: Property,
    TermRole.DIFFUSION: Property,
    TermRole.ADVECTION: AdvectionField,
}


def make_binding(role: TermRole, term: Any) -> Binding:
    """
    Build the binding of ``term`` to ``role``.

    Raises:
        RoleMismatch: If the role does not accept this kind of term.
    """
    expected = ROLE_TERM_TYPES[role]
    if not isinstance(term, expected):
        raise RoleMismatch(
            f"Role '{role}' expects a {expected.__name__}, got {term.__class__.__name__} "
            f"{getattr(term, 'name', term)!r}."
        )
    if role is TermRole.ADVECTION:
        return AdvectionBinding(field=term)
    return PropertyBinding(role=role, property=term)


class Equation:
    """
    User-defined equation.

    Attributes:
        name: Unique equation name.
        field_name: Name of the unknown field.
        var_type: Scalar, vector or tensor unknown.
        default_bc: Condition applied on boundaries without an explicit one.
        params: Numerical settings, see :class:`~pdeinputs.options.EquationParams`.
        warning_hook: Receives non-fatal setup warnings (rebinding, overwritten
            options); falls back to the module logger.
    """

    def __init__(
        self,
        name: str,
        field_name: str,
        var_type: VariableType | str = VariableType.SCALAR,
        default_bc: DefaultBC | str = DefaultBC.ZERO_VALUE,
        warning_hook: Optional[WarningHook] = None,
    ) -> None:
        self.name = check_name(name, "equation")
        self.field_name = check_name(field_name, "field")
        self.var_type = parse_enum(VariableType, var_type, "var_type")
        self.default_bc = parse_enum(DefaultBC, default_bc, "default_bc")
        self.warning_hook = warning_hook
        self._params = EquationParams()

        self._state = EquationState.DECLARED
        self._bindings: dict[TermRole, Binding] = {}
        self._boundary_conditions: list[BoundaryCondition] = []
        self._source_terms: list[SourceTerm] = []
        self._reactions: list[ReactionTerm] = []

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name='{self.name}', field='{self.field_name}', "
            f"var_type={self.var_type}, state={self._state})"
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def state(self) -> EquationState:
        return self._state

    @property
    def is_sealed(self) -> bool:
        return self._state is EquationState.SEALED

    @property
    def params(self) -> EquationParams:
        return self._params

    @property
    def arity(self) -> Arity:
        """Arity of the unknown; source terms and Dirichlet/Neumann values share it."""
        return VARIABLE_ARITY[self.var_type]

    def _check_mutable(self) -> None:
        if self.is_sealed:
            raise EquationSealed(f"Equation '{self.name}' is sealed and cannot be modified.")

    def _touch(self) -> None:
        self._state = EquationState.CONFIGURING

    # ------------------------------------------------------------------
    # Role bindings
    # ------------------------------------------------------------------
    def link(self, role: TermRole | str, term: Property | AdvectionField) -> Binding:
        """
        Bind a property (time, diffusion) or an advection field (advection).

        Rebinding a role replaces the previous term; a warning is emitted.

        Raises:
            EquationSealed: The equation is sealed.
            InvalidOption: Unknown role.
            RoleMismatch: The role does not accept this kind of term.
        """
        self._check_mutable()
        term_role = parse_enum(TermRole, role, "role")
        binding = make_binding(term_role, term)

        previous = self._bindings.get(term_role)
        if previous is not None and previous.term is not term:
            emit_warning(
                self.warning_hook,
                f"Equation '{self.name}': role '{term_role}' rebound from "
                f"'{previous.term.name}' to '{term.name}'; the last binding wins.",
            )
        self._bindings[term_role] = binding
        self._touch()
        logger.info(f"Equation '{self.name}': '{term.name}' linked to the {term_role} term.")
        return binding

    def get_binding(self, role: TermRole | str) -> Optional[Binding]:
        return self._bindings.get(parse_enum(TermRole, role, "role"))

    def has_term(self, role: TermRole | str) -> bool:
        return self.get_binding(role) is not None

    @property
    def bindings(self) -> dict[TermRole, Binding]:
        return dict(self._bindings)

    def property_for(self, role: TermRole | str) -> Optional[Property]:
        """Property bound to the time or diffusion role, or None."""
        term_role = parse_enum(TermRole, role, "role")
        if term_role is TermRole.ADVECTION:
            raise RoleMismatch("The advection role holds an advection field, not a property.")
        binding = self._bindings.get(term_role)
        return binding.property if binding is not None else None

    @property
    def time_property(self) -> Optional[Property]:
        return self.property_for(TermRole.TIME)

    @property
    def diffusion_property(self) -> Optional[Property]:
        return self.property_for(TermRole.DIFFUSION)

    @property
    def advection_field(self) -> Optional[AdvectionField]:
        binding = self._bindings.get(TermRole.ADVECTION)
        return binding.field if binding is not None else None

    # ------------------------------------------------------------------
    # Boundary conditions
    # ------------------------------------------------------------------
    def add_boundary_condition(
        self,
        location: str,
        bc_type: BCType | str,
        definition: DefinitionKind | str,
        value: Any,
    ) -> BoundaryCondition:
        """
        Append a boundary condition.

        Args:
            location: Name of the boundary mesh location.
            bc_type: "dirichlet", "neumann" or "robin".
            definition: "value" or "analytic".
            value: Constant, or a function ``f(point, time)``. Robin conditions
                give the 3 coefficients (alpha, beta, g).

        Raises:
            EquationSealed, InvalidOption, ShapeMismatch.
        """
        self._check_mutable()
        location = check_name(location, "mesh location")
        kind = parse_enum(BCType, bc_type, "bc_type")

        if kind is BCType.ROBIN:
            if self.var_type is not VariableType.SCALAR:
                raise ShapeMismatch(
                    f"Equation '{self.name}': Robin conditions are only available for scalar equations."
                )
            arity = Arity.VECTOR
        else:
            arity = self.arity

        evaluator = make_evaluator(definition, value, arity, allowed=BC_DEFINITIONS)
        bc = BoundaryCondition(location=location, bc_type=kind, evaluator=evaluator)
        self._boundary_conditions.append(bc)
        self._touch()
        logger.info(f"Equation '{self.name}': {kind} condition on '{location}' ({evaluator.kind}).")
        if kind is BCType.ROBIN:
            logger.debug(f"Robin coefficients are read as {ROBIN_COEFFICIENTS}.")
        return bc

    @property
    def boundary_conditions(self) -> list[BoundaryCondition]:
        return list(self._boundary_conditions)

    def integrate_boundary_condition(self, bc: BoundaryCondition, face: MeshEntity, time: float = 0.0) -> Value:
        """Integrate ``bc`` over ``face`` with the equation's ``bc_quadrature``."""
        return bc.integrate(face, time, self.params.bc_quadrature)

    # ------------------------------------------------------------------
    # Source terms
    # ------------------------------------------------------------------
    def add_source_term(
        self,
        label: Optional[str],
        location: MeshLocation | str,
        definition: DefinitionKind | str,
        value: Any,
        context: Optional[Mapping[str, Any]] = None,
    ) -> SourceTerm:
        """
        Append a source term.

        Args:
            label: Optional label; required to target this term with options.
            location: "cells", "interior_faces", "boundary_faces" or "vertices".
            definition: "value", "analytic" or "law".
            value: Constant, ``f(point, time)`` or ``f(point, time, context)``.
            context: Context of a law definition.

        Raises:
            EquationSealed, DuplicateName, InvalidOption, ShapeMismatch.
        """
        self._check_mutable()
        if label is not None:
            check_name(label, "source term label")
            if any(st.label == label for st in self._source_terms):
                raise DuplicateName(f"Equation '{self.name}' already has a source term labelled '{label}'.")
        mesh_location = parse_enum(MeshLocation, location, "location")
        evaluator = make_evaluator(definition, value, self.arity, context=context)

        source_term = SourceTerm(label=label, location=mesh_location, evaluator=evaluator)
        self._source_terms.append(source_term)
        self._touch()
        logger.info(
            f"Equation '{self.name}': source term {label!r} on '{mesh_location}' ({evaluator.kind})."
        )
        return source_term

    @property
    def source_terms(self) -> list[SourceTerm]:
        return list(self._source_terms)

    def get_source_term(self, label: str) -> SourceTerm:
        for source_term in self._source_terms:
            if source_term.label == label:
                return source_term
        raise UnknownName(f"Equation '{self.name}' has no source term labelled '{label}'.")

    def set_source_term_option(self, label: Optional[str], key: SourceTermKey | str, value: Any) -> None:
        """
        Set "quadrature" or "post" on the source term ``label``, or on every
        source term currently attached when ``label`` is None.

        Raises:
            EquationSealed, UnknownName, InvalidOption.
        """
        self._check_mutable()
        option = parse_key(SourceTermKey, key)
        parsed = SOURCE_TERM_PARSERS[option](value, option.value)
        targets = self._source_terms if label is None else [self.get_source_term(label)]
        self._apply_option("source term", targets, option, parsed)

    # ------------------------------------------------------------------
    # Reaction terms
    # ------------------------------------------------------------------
    def add_reaction(self, property: Property, label: Optional[str] = None) -> ReactionTerm:
        """
        Append a reaction term backed by an isotropic property.

        Raises:
            EquationSealed, DuplicateName, RoleMismatch.
        """
        self._check_mutable()
        if not isinstance(property, Property) or property.property_type is not PropertyType.ISOTROPIC:
            raise RoleMismatch(
                f"Reaction terms expect an isotropic Property, got {getattr(property, 'name', property)!r}."
            )
        if label is not None:
            check_name(label, "reaction label")
            if any(r.label == label for r in self._reactions):
                raise DuplicateName(f"Equation '{self.name}' already has a reaction term labelled '{label}'.")

        reaction = ReactionTerm(label=label, property=property)
        self._reactions.append(reaction)
        self._touch()
        logger.info(f"Equation '{self.name}': reaction term {label!r} with property '{property.name}'.")
        return reaction

    @property
    def reactions(self) -> list[ReactionTerm]:
        return list(self._reactions)

    def get_reaction(self, label: str) -> ReactionTerm:
        for reaction in self._reactions:
            if reaction.label == label:
                return reaction
        raise UnknownName(f"Equation '{self.name}' has no reaction term labelled '{label}'.")

    def set_reaction_option(self, label: Optional[str], key: ReactionKey | str, value: Any) -> None:
        """
        Set "hodge_algo", "hodge_coef", "lumping" or "inv_pty" on the reaction
        term ``label``, or on every reaction term when ``label`` is None.

        Raises:
            EquationSealed, UnknownName, InvalidOption.
        """
        self._check_mutable()
        option = parse_key(ReactionKey, key)
        parsed = REACTION_PARSERS[option](value, option.value)
        targets = self._reactions if label is None else [self.get_reaction(label)]
        self._apply_option("reaction term", targets, option, parsed)

    def _apply_option(self, what: str, targets: list, option: StrEnum, parsed: Any) -> None:
        for target in targets:
            previous = target.option(option)
            if target.apply_option(option, parsed):
                emit_warning(
                    self.warning_hook,
                    f"Equation '{self.name}': option '{option}' of {what} {target.label!r} "
                    f"reset from {previous!r} to {parsed!r}; the last setting wins.",
                )
        if targets:
            self._touch()
        logger.debug(f"Equation '{self.name}': {what} option '{option}' = {parsed!r} on {len(targets)} term(s).")

    # ------------------------------------------------------------------
    # Equation options & sealing
    # ------------------------------------------------------------------
    def set_option(self, key: str, value: Any) -> None:
        """
        Set a numerical option of the equation (see :class:`EquationParams`).

        Raises:
            EquationSealed, InvalidOption.
        """
        self._check_mutable()
        self.params.set(key, value)
        self._touch()

    def validate(self) -> None:
        """
        Check that the equation can be sealed.

        Raises:
            UndefinedTerm: A bound term (or reaction property) has no definition.
        """
        for binding in self._bindings.values():
            _ = binding.term.evaluator
        for reaction in self._reactions:
            _ = reaction.property.evaluator

    def seal(self) -> None:
        """
        Make the equation read-only and freeze the terms bound to it, its
        boundary conditions, source terms, reaction terms and parameters.

        Sealing an already sealed equation does nothing.

        Raises:
            UndefinedTerm: See :meth:`validate`.
        """
        if self.is_sealed:
            return
        self.validate()
        for binding in self._bindings.values():
            binding.term.seal()
        for reaction in self._reactions:
            reaction.property.seal()
            reaction.seal()
        for term in (*self._boundary_conditions, *self._source_terms):
            term.seal()
        self._params.seal()
        self._state = EquationState.SEALED
        logger.info(f"Equation '{self.name}' sealed.")

    def summary(self) -> list[str]:
        """Human-readable description of the setup, one line per item."""
        lines = [f"Equation '{self.name}' (field '{self.field_name}', {self.var_type}, default {self.default_bc})"]
        for role in TermRole:
            binding = self._bindings.get(role)
            if binding is not None:
                lines.append(f"  {role:<10} -> {binding.term.name}")
        for bc in self._boundary_conditions:
            lines.append(f"  bc        {bc.bc_type} on '{bc.location}' ({bc.definition})")
        for st in self._source_terms:
            lines.append(
                f"  source    {st.label!r} on {st.location} ({st.definition}, "
                f"quadrature={st.quadrature}, post={st.post})"
            )
        for reaction in self._reactions:
            lines.append(
                f"  reaction  {reaction.label!r} -> {reaction.property.name} "
                f"(hodge={reaction.hodge_algo}, lumping={reaction.lumping}, inv_pty={reaction.inv_pty})"
            )
        lines.append(
            f"  scheme    {self.params.space_scheme}, time {self.params.time_scheme} "
            f"(theta={self.params.time_theta}), bc_quadrature={self.params.bc_quadrature}"
        )
        return lines
