"""
The MODEL layer contains pure data structures for the drawn junction.
It has NO knowledge of meshing or solving.
It deals with Geometry, Materials, Validation and I/O.
"""
