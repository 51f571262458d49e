"""Resolve the identity that scopes a request's tips and folders."""

import hmac
import logging
from typing import Mapping, Optional

from .models import ANONYMOUS

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Map bearer tokens to user ids; everything else is anonymous."""

    def __init__(self, tokens: Optional[Mapping[str, str]] = None):
        self._tokens = dict(tokens or {})

    def resolve(self, headers: Mapping[str, str]) -> str:
        header = headers.get("authorization", "") or ""
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return ANONYMOUS
        token = token.strip()
        for known, user in self._tokens.items():
            if hmac.compare_digest(known, token):
                return user
        logger.warning("Unknown bearer token; treating request as anonymous")
        return ANONYMOUS
