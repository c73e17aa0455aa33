"""
Term Definitions
================
Shared machinery for terms backed by an evaluator: building evaluators from a
definition keyword, the warning hook, and the base class of globally named
terms (properties and advection fields).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Any, Callable, Collection, Mapping, Optional

from pdeinputs.analysis import quadrature
from pdeinputs.analysis.evaluators import (
    AnalyticEvaluator,
    Arity,
    ConstantEvaluator,
    DefinitionKind,
    Evaluator,
    LawEvaluator,
)
from pdeinputs.errors import DomainSealed, EquationSealed, InvalidOption, UndefinedTerm
from pdeinputs.options import QuadratureType, parse_enum

if TYPE_CHECKING:
    from pdeinputs.analysis.entities import MeshEntity
    from pdeinputs.analysis.evaluators import Value

logger = logging.getLogger(__name__)

WarningHook = Callable[[str], None]

ALL_DEFINITIONS: frozenset[DefinitionKind] = frozenset(DefinitionKind)


def emit_warning(hook: Optional[WarningHook], message: str) -> None:
    """Report a non-fatal setup issue through ``hook``, or log it when there is none."""
    if hook is None:
        logger.warning(message)
    else:
        hook(message)


def check_name(name: Any, what: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidOption(f"The name of a {what} must be a non-empty string, got {name!r}.")
    return name


def make_evaluator(
    definition: DefinitionKind | str,
    value: Any,
    arity: Arity,
    context: Optional[Mapping[str, Any]] = None,
    symmetric: bool = False,
    allowed: Collection[DefinitionKind] = ALL_DEFINITIONS,
) -> Evaluator:
    """
    Build the evaluator matching a definition keyword.

    Args:
        definition: "value", "analytic" or "law".
        value: Constant value, or the function for analytic/law definitions.
        arity: Declared output arity.
        context: Law context (law definitions only).
        symmetric: Require symmetric tensor values.
        allowed: Definition kinds accepted by the caller.

    Raises:
        InvalidOption: Unknown or disallowed definition, or a non-callable
            analytic/law definition.
        ShapeMismatch: A constant value of the wrong arity.
    """
    kind = parse_enum(DefinitionKind, definition, "definition")
    if kind not in allowed:
        accepted = ", ".join(sorted(k.value for k in allowed))
        raise InvalidOption(f"Definition '{kind}' is not accepted here. Expected one of: {accepted}.")

    if kind is DefinitionKind.VALUE:
        return ConstantEvaluator(value, arity, symmetric=symmetric)
    if not callable(value):
        raise InvalidOption(f"A '{kind}' definition needs a callable, got {value!r}.")
    if kind is DefinitionKind.ANALYTIC:
        return AnalyticEvaluator(value, arity, symmetric=symmetric)
    return LawEvaluator(value, arity, context=context or {}, symmetric=symmetric)


class DefinableTerm(ABC):
    """
    Abstract base class for globally named terms defined after registration.

    The evaluator is attached by one of the ``define_by_*`` calls. Redefining
    before sealing replaces it (with a warning); after sealing it is frozen.
    """
    CATEGORY: str = "term"

    def __init__(self, name: str, warning_hook: Optional[WarningHook] = None) -> None:
        self.name = check_name(name, self.CATEGORY)
        self.warning_hook = warning_hook
        self._evaluator: Optional[Evaluator] = None
        self._sealed = False

    def __repr__(self) -> str:
        definition = self.definition.value if self.definition else "undefined"
        return f"{self.__class__.__name__}(name='{self.name}', arity={self.arity}, definition={definition})"

    @property
    @abstractmethod
    def arity(self) -> Arity:
        """Output arity required from the evaluator."""
        pass

    @property
    def symmetric(self) -> bool:
        return False

    @property
    def is_defined(self) -> bool:
        return self._evaluator is not None

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    @property
    def definition(self) -> Optional[DefinitionKind]:
        return self._evaluator.kind if self._evaluator is not None else None

    @property
    def evaluator(self) -> Evaluator:
        if self._evaluator is None:
            raise UndefinedTerm(f"{self.CATEGORY.capitalize()} '{self.name}' has no definition.")
        return self._evaluator

    def _set_evaluator(self, evaluator: Evaluator) -> None:
        if self._evaluator is not None:
            emit_warning(
                self.warning_hook,
                f"{self.CATEGORY.capitalize()} '{self.name}' is redefined "
                f"({self._evaluator.kind} -> {evaluator.kind}); the last definition wins.",
            )
        self._evaluator = evaluator
        logger.debug(f"{self.CATEGORY.capitalize()} '{self.name}' defined by {evaluator.kind}.")

    def _check_mutable(self) -> None:
        if self._sealed:
            raise DomainSealed(f"{self.CATEGORY.capitalize()} '{self.name}' is sealed and cannot be redefined.")

    def define_by_value(self, value: Any) -> None:
        """Define by a constant value (number, sequence, array or blank separated string)."""
        self._check_mutable()
        self._set_evaluator(make_evaluator(DefinitionKind.VALUE, value, self.arity, symmetric=self.symmetric))

    def define_by_analytic(self, function: Callable[..., Any]) -> None:
        """Define by a pure function ``f(point, time)``."""
        self._check_mutable()
        self._set_evaluator(make_evaluator(DefinitionKind.ANALYTIC, function, self.arity, symmetric=self.symmetric))

    def define_by_law(self, function: Callable[..., Any], context: Optional[Mapping[str, Any]] = None) -> None:
        """Define by a pure law ``f(point, time, context)``."""
        self._check_mutable()
        self._set_evaluator(
            make_evaluator(DefinitionKind.LAW, function, self.arity, context=context, symmetric=self.symmetric)
        )

    def evaluate(self, point: Any, time: float = 0.0) -> Value:
        return self.evaluator.evaluate(point, time)

    def integrate(
        self,
        entity: MeshEntity,
        time: float = 0.0,
        quadrature_type: QuadratureType | str = quadrature.DEFAULT_QUADRATURE,
    ) -> Value:
        return quadrature.integrate(entity, self.evaluator, time, quadrature_type)

    def seal(self, require_definition: bool = True) -> None:
        """Freeze the definition; by default the term must be defined."""
        if require_definition:
            _ = self.evaluator
        self._sealed = True


class SealableMixin:
    """
    Attribute writes raise :class:`~pdeinputs.errors.EquationSealed` once
    :meth:`seal` was called by the owning equation.
    """
    _sealed = False

    def __setattr__(self, name: str, value: Any) -> None:
        if self._sealed:
            raise EquationSealed(f"{self!r} belongs to a sealed equation; '{name}' cannot be changed.")
        super().__setattr__(name, value)

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        object.__setattr__(self, "_sealed", True)


class OptionsMixin(SealableMixin):
    """
    Per-term options stored as attributes named after their key.

    Remembers which options were set explicitly, so that overwriting one with
    a different value can be reported.
    """

    def _init_options(self) -> None:
        self._explicit_options: set[str] = set()

    def option(self, key: StrEnum) -> Any:
        return getattr(self, key.value)

    def apply_option(self, key: StrEnum, value: Any) -> bool:
        """Store an already parsed option; return True if it overwrote an explicit, different value."""
        overwritten = key.value in self._explicit_options and self.option(key) != value
        setattr(self, key.value, value)
        self._explicit_options.add(key.value)
        return overwritten
