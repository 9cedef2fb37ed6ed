"""app-template -- mutates a freshly generated Rails API project.

Quick usage::

    python -m apptemplate.pipeline path/to/app --plan activities --devise
"""

__version__ = "0.1.0"
