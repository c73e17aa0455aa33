"""
Error Taxonomy
==============
Typed failures raised by the setup and evaluation layers.

All errors are raised synchronously to the caller and are never retried:
they signal configuration or data-integrity faults, not transient conditions.
"""


class PdeInputsError(Exception):
    """Base class of every error raised by this package."""


class UnknownName(PdeInputsError, KeyError):
    """Lookup of a property, advection field, equation or label that does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class DuplicateName(PdeInputsError):
    """Registration of a name (or label) that is already taken in its category."""


class ShapeMismatch(PdeInputsError, ValueError):
    """An evaluator produced (or was given) a value of the wrong arity."""


class RoleMismatch(PdeInputsError, TypeError):
    """A term was bound to a role that does not accept its kind."""


class DegenerateEntity(PdeInputsError, ValueError):
    """A mesh entity has a zero, negative or non-finite measure."""


class EquationSealed(PdeInputsError):
    """Mutation of an equation after it was sealed."""


class DomainSealed(EquationSealed):
    """Mutation of the domain configuration (or one of its terms) after sealing."""


class InvalidOption(PdeInputsError, ValueError):
    """Unrecognised option key, or a value outside the accepted set or range."""


class UndefinedTerm(PdeInputsError):
    """A term was evaluated (or sealed into an equation) before being defined."""


class SingularProperty(PdeInputsError, ZeroDivisionError):
    """A property that must be inverted evaluates to zero."""
