"""
The MODEL layer holds the setup-time data: named terms (properties, advection
fields, source terms, boundary conditions, reaction terms), the equations they
are bound to, and the domain configuration registry.
It consumes the ANALYSIS layer for evaluation and quadrature.
"""
