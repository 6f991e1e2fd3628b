"""ISO 7064 MOD 97-10 helpers shared by IBAN and creditor reference checks."""

from __future__ import annotations


def to_digits(text: str) -> str:
    """Replace letters with two-digit numbers (A=10 ... Z=35), keeping digits as is.

    Raises ValueError on characters outside 0-9 / A-Z.
    """
    out = []
    for char in text:
        if "0" <= char <= "9":
            out.append(char)
        elif "A" <= char <= "Z":
            out.append(str(ord(char) - 55))
        else:
            raise ValueError(f"Not an alphanumeric character: {char!r}")
    return "".join(out)


def mod97(text: str) -> int:
    """Remainder of the alphanumeric string, read as a number, modulo 97."""
    remainder = 0
    for digit in to_digits(text):
        remainder = (remainder * 10 + int(digit)) % 97
    return remainder


def check_digits(body: str, prefix: str) -> str:
    """Two check digits for ``body`` when ``prefix + '00'`` is moved to the end."""
    return f"{98 - mod97(body + prefix + '00'):02d}"
