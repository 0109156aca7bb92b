"""
Abstract base models shared by every domain app.

Base Classes:
    BaseModel: created_at/updated_at timestamps, newest-first ordering

See core.model_mixins for UUIDPrimaryKeyMixin.

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Purchase(UUIDPrimaryKeyMixin, BaseModel):
        ...

Note:
    List mixins before BaseModel in the bases of a model.
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract model that timestamps every row.

    Fields:
        created_at: Set once when the row is inserted
        updated_at: Refreshed on every save()
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
