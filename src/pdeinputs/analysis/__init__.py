"""
The ANALYSIS layer holds the numerical core: evaluators, the geometric view of
mesh entities, reference Gauss rules and the quadrature engine.
It has no knowledge of equations or of the setup registry.
"""
