"""
Reflector Exception Hierarchy

Scoring never raises for data-shape problems; bad records degrade to
neutral results. These exceptions cover configuration errors only, caught
when reference data or the achievement registry is loaded.

Error Codes:
- RF_ITEM_BANK_INVALID: Item bank failed startup validation
- RF_REGISTRY_INVALID: Achievement registry failed validation
"""

from __future__ import annotations

from typing import Any, Optional


class ReflectorError(Exception):
    """Base exception for all Reflector configuration errors."""

    code: str = "RF_INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ItemBankError(ReflectorError):
    """The item bank is inconsistent (duplicate ids, empty construct, bad options)."""

    code = "RF_ITEM_BANK_INVALID"


class AchievementRegistryError(ReflectorError):
    """The achievement registry is inconsistent (duplicate or blank ids)."""

    code = "RF_REGISTRY_INVALID"
