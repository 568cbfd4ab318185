"""Shared enumerations and choices used across apps."""

from django.db import models


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    DISCONTINUED = "discontinued", "Discontinued"


class ProductUnit(models.TextChoices):
    PIECE = "piece", "Piece"
    KG = "kg", "Kilogram"
    LITER = "liter", "Liter"
    BOX = "box", "Box"
    OTHER = "other", "Other"


class MovementType(models.TextChoices):
    ENTRY = "entry", "Entry"
    EXIT = "exit", "Exit"
    ADJUSTMENT = "adjustment", "Adjustment"
    TRANSFER = "transfer", "Transfer"


class MovementReason(models.TextChoices):
    """Business reasons a movement may be recorded for."""

    PURCHASE = "purchase", "Purchase"
    SALE = "sale", "Sale"
    RETURN = "return", "Return"
    DAMAGE = "damage", "Damage"
    LOSS = "loss", "Loss"
    THEFT = "theft", "Theft"
    CORRECTION = "correction", "Correction"
    TRANSFER_IN = "transfer_in", "Transfer in"
    TRANSFER_OUT = "transfer_out", "Transfer out"
    INITIAL_STOCK = "initial_stock", "Initial stock"
    PROMOTION = "promotion", "Promotion"
    EXPIRED = "expired", "Expired"
    QUALITY_CONTROL = "quality_control", "Quality control"
    OTHER = "other", "Other"


class MovementStatus(models.TextChoices):
    """Lifecycle statuses for stock movements."""

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
