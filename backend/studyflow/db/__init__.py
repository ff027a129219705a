"""Database utilities and models."""

from studyflow.db.base import Base
from studyflow.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
