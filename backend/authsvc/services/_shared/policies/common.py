from __future__ import annotations

import ipaddress

from authsvc.services._shared.errors import InvalidIDError, InvalidIPError


def normalize_client_ip(raw: str | None) -> str:
    """
    Return the canonical text form of a client IP.

    :raises InvalidIPError: When the address is missing or unparsable.
    """
    if raw is None or not str(raw).strip():
        raise InvalidIPError()
    try:
        return str(ipaddress.ip_address(str(raw).strip()))
    except ValueError:
        raise InvalidIPError() from None


def parse_account_id(raw: int | str | None) -> int:
    """
    Coerce a path/CLI value into a positive account id.

    :raises InvalidIDError: On empty, non-numeric, or non-positive input.
    """
    if isinstance(raw, bool):
        raise InvalidIDError()
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw or "").strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidIDError()
        value = int(text)
    if value <= 0:
        raise InvalidIDError()
    return value
