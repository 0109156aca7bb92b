"""
Model mixins combined with core.models.BaseModel.

Available Mixins:
    UUIDPrimaryKeyMixin: UUID primary key generated in Python

Usage:
    class PixCharge(UUIDPrimaryKeyMixin, BaseModel):
        txid = models.CharField(max_length=35, unique=True)
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a UUID primary key instead of an auto-increment integer.

    Identifiers of purchases and payments travel through Stripe metadata
    and URLs, so they must not reveal record counts or be guessable.

    Fields:
        id: UUIDField primary key (uuid4, assigned before insert)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
