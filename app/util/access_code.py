import secrets

ACCESS_CODE_SPACE = 0x10000


def generate_access_code() -> str:
    """Draw a fresh 4-digit upper-case hexadecimal code."""
    return f"{secrets.randbelow(ACCESS_CODE_SPACE):04X}"


def access_codes_match(submitted: str, stored: str) -> bool:
    return submitted.strip().upper() == stored.strip().upper()
