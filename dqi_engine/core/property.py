"""
Property input data model.

Defines the canonical shape of a deal submitted for Deal Quality
Index analysis, and the normalisation step that maps loosely shaped
upstream property records onto it.
"""

import math
import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class MissingRequiredField(ValueError):
    """Raised when a mandatory property field is absent or unusable."""

    def __init__(self, field: str, message: str = "", value: Any = None):
        self.field = field
        self.value = value
        self.message = message or f"'{field}' is required for DQI analysis"
        super().__init__(self.message)


class PropertyType(Enum):
    """Commercial property sectors scored by the engine."""

    OFFICE = "Office"
    INDUSTRIAL = "Industrial"
    RETAIL = "Retail"
    MULTIFAMILY = "Multifamily"
    MIXED = "Mixed"

    @classmethod
    def parse(cls, value: Any) -> "PropertyType":
        """
        Parse a free-form sector label.

        Unknown or empty labels (e.g. "Commercial") resolve to MIXED.
        """
        if isinstance(value, cls):
            return value
        if not value:
            return cls.MIXED

        key = re.sub(r"[\s_\-]+", "", str(value)).lower()
        return _PROPERTY_TYPE_ALIASES.get(key, cls.MIXED)


_PROPERTY_TYPE_ALIASES = {
    "office": PropertyType.OFFICE,
    "offices": PropertyType.OFFICE,
    "industrial": PropertyType.INDUSTRIAL,
    "warehouse": PropertyType.INDUSTRIAL,
    "logistics": PropertyType.INDUSTRIAL,
    "retail": PropertyType.RETAIL,
    "shoppingcenter": PropertyType.RETAIL,
    "multifamily": PropertyType.MULTIFAMILY,
    "apartment": PropertyType.MULTIFAMILY,
    "apartments": PropertyType.MULTIFAMILY,
    "residential": PropertyType.MULTIFAMILY,
    "mixed": PropertyType.MIXED,
    "mixeduse": PropertyType.MIXED,
}


@dataclass(frozen=True)
class PropertyInput:
    """
    Subject of a DQI analysis.

    Immutable for the duration of one analysis. Optional diligence
    fields default to None; pillars substitute documented defaults
    and say so in their details.
    """

    # Identification
    property_id: str
    property_value: float
    name: str = "Property"

    # Financials
    net_operating_income: Optional[float] = None
    square_feet: Optional[float] = None
    property_type: PropertyType = PropertyType.MIXED
    location: str = ""

    # Freshness of the upstream record
    last_updated: Optional[datetime] = None

    # Tenancy facts (derived from deal size and type when absent)
    walt_years: Optional[float] = None
    occupancy: Optional[float] = None  # Percent
    top_tenant_share: Optional[float] = None  # Percent of NOI
    investment_grade_share: Optional[float] = None  # Fraction 0-1

    # Third-party reports
    has_appraisal: Optional[bool] = None
    has_environmental_report: Optional[bool] = None
    has_condition_report: Optional[bool] = None

    # Legal structure
    complex_structure: Optional[bool] = None

    def __post_init__(self) -> None:
        if (
            self.property_value is None
            or not math.isfinite(self.property_value)
            or self.property_value <= 0
        ):
            raise MissingRequiredField(
                "propertyValue",
                "Property value is required for DQI analysis and must be positive",
                self.property_value,
            )
        for name, value in (
            ("netOperatingIncome", self.net_operating_income),
            ("squareFeet", self.square_feet),
        ):
            if value is not None and not math.isfinite(value):
                raise MissingRequiredField(name, f"{name} must be a finite number", value)

    @property
    def actual_cap_rate(self) -> Optional[float]:
        """Realised cap rate (NOI / value), if NOI is known."""
        if self.net_operating_income is None:
            return None
        return self.net_operating_income / self.property_value

    @property
    def price_per_sqft(self) -> Optional[float]:
        """Value per square foot, if size is known."""
        if not self.square_feet:
            return None
        return self.property_value / self.square_feet

    def with_overrides(self, **changes: Any) -> "PropertyInput":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "property_id": self.property_id,
            "name": self.name,
            "property_value": self.property_value,
            "net_operating_income": self.net_operating_income,
            "square_feet": self.square_feet,
            "property_type": self.property_type.value,
            "location": self.location,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "walt_years": self.walt_years,
            "occupancy": self.occupancy,
            "top_tenant_share": self.top_tenant_share,
            "investment_grade_share": self.investment_grade_share,
            "has_appraisal": self.has_appraisal,
            "has_environmental_report": self.has_environmental_report,
            "has_condition_report": self.has_condition_report,
            "complex_structure": self.complex_structure,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyInput":
        """Create from dictionary representation (canonical field names)."""
        return normalize_property(data.get("property_id", ""), data)


# =============================================================================
# Input normalisation
# =============================================================================

# Source field precedence, first match wins
VALUE_FIELDS = (
    "propertyValue", "property_value", "price", "totalValue",
    "total_value", "listPrice", "list_price",
)
NOI_FIELDS = ("netOperatingIncome", "net_operating_income", "noi")
SQFT_FIELDS = ("squareFeet", "square_feet", "sqft", "size")
TYPE_FIELDS = ("propertyType", "property_type", "type")
LOCATION_FIELDS = ("location", "address", "city")
NAME_FIELDS = ("name", "title")
UPDATED_FIELDS = ("lastUpdated", "last_updated", "updatedAt", "updated_at")

_OPTIONAL_FIELDS = {
    "walt_years": ("waltYears", "walt_years", "walt"),
    "occupancy": ("occupancy", "occupancyRate", "occupancy_rate"),
    "top_tenant_share": ("topTenantShare", "top_tenant_share"),
    "investment_grade_share": ("investmentGradeShare", "investment_grade_share"),
}
_FLAG_FIELDS = {
    "has_appraisal": ("hasAppraisal", "has_appraisal"),
    "has_environmental_report": ("hasEnvironmentalReport", "has_environmental_report", "hasESA"),
    "has_condition_report": ("hasConditionReport", "has_condition_report", "hasPCA"),
    "complex_structure": ("complexStructure", "complex_structure"),
}

_MONEY_PATTERN = re.compile(r"^(-)?\s*\$?\s*([0-9][0-9,]*(?:\.[0-9]+)?)\s*([kmb])?$", re.IGNORECASE)
_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse a numeric or currency-formatted amount.

    Accepts numbers and strings such as "10,000,000", "$8.5M" or "850k".
    Returns None when the value cannot be read as a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            amount = float(value)
        except OverflowError:
            return None
    else:
        match = _MONEY_PATTERN.match(str(value).strip())
        if not match:
            return None
        number = float(match.group(2).replace(",", ""))
        suffix = (match.group(3) or "").lower()
        amount = number * _MULTIPLIERS.get(suffix, 1)
        if match.group(1):
            amount = -amount

    if not math.isfinite(amount):
        return None
    return amount


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _parse_flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y")


def _first_present(data: dict, keys: tuple) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            return data[key]
    return None


def _first_amount(data: dict, keys: tuple, positive: bool = False) -> Optional[float]:
    for key in keys:
        amount = parse_amount(data.get(key))
        if amount is None:
            continue
        if positive and amount <= 0:
            continue
        return amount
    return None


def normalize_property(property_id: str, data: dict) -> PropertyInput:
    """
    Map a loosely shaped property record onto PropertyInput.

    Field precedence follows the *_FIELDS tuples above. The first
    positive value among VALUE_FIELDS is used.

    Args:
        property_id: Identifier of the record being analysed
        data: Upstream property payload (camelCase or snake_case keys)

    Returns:
        Canonical PropertyInput

    Raises:
        MissingRequiredField: If no positive property value is present
    """
    property_value = _first_amount(data, VALUE_FIELDS, positive=True)
    if property_value is None:
        raise MissingRequiredField(
            "propertyValue",
            "Property value is required for DQI analysis and must be positive",
            _first_present(data, VALUE_FIELDS),
        )

    # Zero and negative NOI are real operating results, not gaps
    noi = _first_amount(data, NOI_FIELDS)
    square_feet = _first_amount(data, SQFT_FIELDS, positive=True)

    optional = {
        name: _first_amount(data, keys)
        for name, keys in _OPTIONAL_FIELDS.items()
    }
    flags = {
        name: _parse_flag(_first_present(data, keys))
        for name, keys in _FLAG_FIELDS.items()
    }

    return PropertyInput(
        property_id=str(property_id or data.get("id", "")),
        property_value=property_value,
        name=str(_first_present(data, NAME_FIELDS) or "Property"),
        net_operating_income=noi,
        square_feet=square_feet,
        property_type=PropertyType.parse(_first_present(data, TYPE_FIELDS)),
        location=str(_first_present(data, LOCATION_FIELDS) or "").strip(),
        last_updated=_parse_timestamp(_first_present(data, UPDATED_FIELDS)),
        **optional,
        **flags,
    )
