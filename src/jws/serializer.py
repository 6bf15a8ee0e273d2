"""
JWS Serialization

Compact:  b64url(protected) "." b64url(payload) "." b64url(signature)
General:  {"payload": ..., "signatures": [{"header", "protected", "signature"}]}

Parsing captures the decoded protected header bytes as the header's
source so later verification signs exactly what was received.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from .config import get_settings
from .encoding import b64url_decode, b64url_encode
from .errors import (
    InvalidCompactPartsCountError,
    InvalidHeaderValueError,
    InvalidMessageError,
)
from .header import EncodedHeader, Header
from .message import Message, Signature

logger = structlog.get_logger()


# ============================================================================
# Wire models (general and flattened JSON)
# ============================================================================

class SignatureModel(BaseModel):
    """One element of the ``signatures`` array."""
    model_config = ConfigDict(extra="ignore")

    protected: Optional[StrictStr] = None
    header: Optional[Dict[str, Any]] = None
    signature: StrictStr


class GeneralMessageModel(BaseModel):
    """General JSON serialization."""
    model_config = ConfigDict(extra="ignore")

    payload: StrictStr
    signatures: List[SignatureModel] = Field(..., min_length=1)


class FlattenedMessageModel(SignatureModel):
    """Flattened JSON serialization: one signature hoisted to the top level."""
    payload: StrictStr


def _to_text(data: Union[str, bytes]) -> str:
    if isinstance(data, (bytes, bytearray)):
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidMessageError("JWS input must be UTF-8")
    return data


class Serializer(ABC):
    """Converts a Message to and from a wire form."""

    @abstractmethod
    def serialize(self, message: Message) -> bytes:
        pass

    @abstractmethod
    def parse(self, data: Union[str, bytes]) -> Message:
        pass


class CompactSerializer(Serializer):
    """Three-segment, single-signature wire form."""

    def serialize(self, message: Message) -> bytes:
        if len(message.signatures) != 1:
            raise InvalidMessageError(
                f"compact serialization requires exactly one signature, "
                f"got {len(message.signatures)}"
            )
        entry = message.signatures[0]
        if not entry.public_header.is_empty():
            raise InvalidMessageError("compact serialization cannot carry a public header")
        protected = entry.protected_header.encode()
        if not protected:
            raise InvalidMessageError("compact serialization requires a protected header")

        logger.debug("jws_compact_serialized")
        return b".".join([
            b64url_encode(protected),
            b64url_encode(message.payload),
            b64url_encode(entry.signature),
        ])

    def parse(self, data: Union[str, bytes]) -> Message:
        parts = _to_text(data).strip().split(".")
        if len(parts) != 3:
            raise InvalidCompactPartsCountError(
                f"compact JWS format must have three parts, got {len(parts)}"
            )

        header_b64, payload_b64, signature_b64 = parts
        protected = EncodedHeader.decode(b64url_decode(header_b64))
        message = Message(
            payload=b64url_decode(payload_b64),
            signatures=[Signature(
                public_header=Header(),
                protected_header=protected,
                signature=b64url_decode(signature_b64),
            )],
        )
        logger.debug("jws_compact_parsed", algorithm=protected.get("alg"))
        return message


class JSONSerializer(Serializer):
    """General JSON form; a one-entry Message still emits a signatures array."""

    def __init__(self, pretty: Optional[bool] = None):
        self.pretty = get_settings().json_pretty if pretty is None else pretty

    def serialize(self, message: Message) -> bytes:
        signatures = []
        for entry in message.signatures:
            item: Dict[str, Any] = {}
            if not entry.public_header.is_empty():
                item["header"] = entry.public_header.to_dict()
            protected = entry.protected_header.encode()
            if protected:
                item["protected"] = b64url_encode(protected).decode("ascii")
            item["signature"] = b64url_encode(entry.signature).decode("ascii")
            signatures.append(item)

        document = {
            "payload": b64url_encode(message.payload).decode("ascii"),
            "signatures": signatures,
        }
        logger.debug("jws_json_serialized", signatures=len(signatures), pretty=self.pretty)
        if self.pretty:
            return json.dumps(document, indent=2).encode("utf-8")
        return json.dumps(document, separators=(",", ":")).encode("utf-8")

    def parse(self, data: Union[str, bytes]) -> Message:
        try:
            document = json.loads(_to_text(data))
        except ValueError as e:
            raise InvalidMessageError(f"JWS JSON is not valid JSON: {e}")
        if not isinstance(document, dict):
            raise InvalidMessageError("JWS JSON must be an object")

        try:
            if "signatures" in document:
                model = GeneralMessageModel.model_validate(document)
                entries = model.signatures
            elif "signature" in document:
                model = FlattenedMessageModel.model_validate(document)
                entries = [model]
            else:
                raise InvalidMessageError("JWS JSON has no signatures")
        except ValidationError as e:
            raise InvalidMessageError(f"malformed JWS JSON: {e.error_count()} error(s)")

        message = Message(
            payload=b64url_decode(model.payload),
            signatures=[self._parse_entry(entry) for entry in entries],
        )
        logger.debug("jws_json_parsed", signatures=len(message.signatures))
        return message

    @staticmethod
    def _parse_entry(entry: SignatureModel) -> Signature:
        if entry.protected is None and entry.header is None:
            raise InvalidMessageError("signature has neither protected nor public header")

        protected = EncodedHeader()
        if entry.protected:
            protected = EncodedHeader.decode(b64url_decode(entry.protected))
        public = Header.from_dict(entry.header or {})
        if public.critical is not None:
            raise InvalidHeaderValueError("crit must be in the protected header")

        overlap = set(protected.to_dict()) & set(public.to_dict())
        if overlap:
            raise InvalidHeaderValueError(
                f"header names appear in both protected and public headers: {sorted(overlap)}"
            )
        return Signature(
            public_header=public,
            protected_header=protected,
            signature=b64url_decode(entry.signature),
        )


def parse(data: Union[str, bytes]) -> Message:
    """Parse either wire form, detecting JSON by a leading ``{``."""
    text = _to_text(data).lstrip()
    if text.startswith("{"):
        return JSONSerializer().parse(text)
    return CompactSerializer().parse(text)
