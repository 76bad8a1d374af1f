"""python-bootbundle.

A launcher that doubles as a builder: ``--build`` appends a compiled script to
a copy of the launcher, and running the result extracts and executes it.
"""

__all__: list[str] = ["__version__"]

__version__: str = "0.1.0"
