"""
Version of the installed ansilog package.

Overwritten by the hatch-vcs build hook from the latest ``vX.Y.Z`` tag; the
value below is used for source checkouts that were never built.
"""

__version__ = "0.0.0+local"
