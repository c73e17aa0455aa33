"""
Equation inputs for cell/vertex based PDE discretisations.

Declares physical terms (properties, advection fields, source terms, boundary
conditions), binds them to named equations, and integrates them over mesh
entities for an external assembly step.
"""
