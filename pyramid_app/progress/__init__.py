"""
Pure workout derivations.

Pyramid generation, the rest-duration formula and read-only selectors over
the session context. Nothing here mutates state or performs I/O.
"""
