from motopay.utils.hashing import generate_hash, link_hash, sign_payload, verify_signature
from motopay.utils.validators import validate_plate_number, validate_vin, validate_tin

__all__ = [
    "generate_hash", "link_hash", "sign_payload", "verify_signature",
    "validate_plate_number", "validate_vin", "validate_tin",
]
