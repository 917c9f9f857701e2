"""
Prereg Mapper Package

Resolves pre-registration variables against a survey's column inventory
and derives the statistical model layouts a template wizard is built from.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - How candidate scores are computed
    - How report or template files are rendered
    - Where or how specs are stored

It consumes a generated analysis spec and produces resolved specs and
wizard options. Everything with side effects is a collaborator handed to
the session.
"""

__version__ = "0.1.0"
