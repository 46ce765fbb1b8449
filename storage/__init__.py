"""
Storage Package.

This package manages all town persistence.

Modules:
- database: Engine, sessions and table creation
- models/: ORM models
- repositories/: Data access layer (put / get_latest)
"""
