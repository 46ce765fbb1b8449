"""
Base ORM Model.

Declarative base shared by all town storage models.
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.

    Provides the metadata used for table creation.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }
