"""Marketplace notification backend.

The package is kept regular (not a namespace package) so ``app`` always
resolves to this project rather than to an unrelated installed module.
"""
