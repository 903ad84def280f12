"""
FEM Engine
==========
The core implementation of the steady-state thermal bridge analysis.

Why is this file needed?
------------------------
1. Meshing: It turns material-tagged regions into a structured Tri3 mesh.
2. Physics: It assembles and solves the steady-state conduction equation.
3. Diagnostics: It derives PSI, fRsi, isotherms and heat flux from the field.

Note: This package should be pure Python/NumPy and should NOT import any GUI toolkit.
"""
