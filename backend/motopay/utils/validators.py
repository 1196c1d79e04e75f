"""
Validators — Regex and rule-based validation for vehicle identifiers.
"""
import re


def validate_plate_number(plate: str | None) -> bool:
    """Validate plate format: 2-3 letters, 2-3 digits, 2-3 letters (e.g. PL-582-KN)."""
    if not plate:
        return False
    return bool(re.match(r"^[A-Z]{2,3}-\d{2,3}-[A-Z]{2,3}$", plate.strip().upper()))


def validate_vin(vin: str | None) -> bool:
    """Validate a 17-character VIN (letters I, O, Q are never used)."""
    if not vin:
        return False
    return bool(re.match(r"^[A-HJ-NPR-Z0-9]{17}$", vin.strip().upper()))


def validate_tin(tin: str | None) -> bool:
    """Validate Tax Identification Number: exactly 10 digits."""
    if not tin:
        return False
    return bool(re.match(r"^\d{10}$", tin.strip()))
