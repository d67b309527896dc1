"""
Utility helpers.

Import directly from the submodules to avoid circular imports between
`app.configs`, `app.errors` and `app.utils`.
"""
