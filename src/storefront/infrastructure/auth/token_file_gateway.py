"""JSON-file-backed implementation of AuthGateway.

The file maps opaque bearer tokens to principals::

    {
      "tok-alice": {"identity": "alice", "role": "user"},
      "tok-ops":   {"identity": "ops", "role": "admin"}
    }

It is re-read on every verification so revoking a token takes effect
without a restart.
"""

from __future__ import annotations

import json
from pathlib import Path

from storefront.domain.exceptions import AuthError
from storefront.domain.gateway.auth_gateway import AuthGateway, Principal, Role

_BEARER_PREFIX = "bearer "


class TokenFileAuthGateway(AuthGateway):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path

    def verify(self, credential: str | None) -> Principal:
        token = self._strip_scheme(credential)
        if not token:
            raise AuthError("Not authorized to access this resource")

        entry = self._load_raw().get(token)
        if entry is None:
            raise AuthError("Not authorized to access this resource")

        try:
            return Principal(identity=entry["identity"], role=Role(entry["role"]))
        except (KeyError, ValueError) as exc:
            raise AuthError("Credential maps to an invalid principal") from exc

    # --- File helpers ---------------------------------------------------------

    @staticmethod
    def _strip_scheme(credential: str | None) -> str:
        value = (credential or "").strip()
        if value.lower().startswith(_BEARER_PREFIX):
            value = value[len(_BEARER_PREFIX):].strip()
        return value

    def _load_raw(self) -> dict[str, dict]:
        if not self._file_path.exists():
            return {}
        return json.loads(self._file_path.read_text(encoding="utf-8"))
