"""
JWS Header Model

Protected headers are covered by the signature, public (unprotected)
headers are not. Both share the same field model; MergedHeader gives a
lookup view over the pair where protected values always win.

An EncodedHeader parsed off the wire remembers the exact bytes it was
decoded from. Those bytes, not a re-encoding, are what gets signed and
verified, so key order and whitespace chosen by the producer survive.
Any mutation through ``set`` drops the captured bytes.
"""

import copy
import json
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from .errors import InvalidHeaderValueError

logger = structlog.get_logger()


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


# Wire name -> (attribute name, shape check, shape description), in RFC order
ESSENTIAL_FIELDS = {
    "alg": ("algorithm", lambda v: isinstance(v, str), "string"),
    "cty": ("content_type", lambda v: isinstance(v, str), "string"),
    "crit": ("critical", _is_str_list, "list of strings"),
    "jwk": ("jwk", lambda v: isinstance(v, dict), "JSON object"),
    "jku": ("jwk_set_url", lambda v: isinstance(v, str), "string"),
    "kid": ("key_id", lambda v: isinstance(v, str), "string"),
    "typ": ("type", lambda v: isinstance(v, str), "string"),
    "x5u": ("x509_url", lambda v: isinstance(v, str), "string"),
    "x5c": ("x509_cert_chain", _is_str_list, "list of strings"),
    "x5t": ("x509_cert_thumbprint", lambda v: isinstance(v, str), "string"),
    "x5t#S256": ("x509_cert_thumbprint_s256", lambda v: isinstance(v, str), "string"),
}


def _normalize(name: str, value: Any) -> Any:
    """Validate an essential value and return the stored form."""
    _, check, shape = ESSENTIAL_FIELDS[name]
    # SignatureAlgorithm is a str Enum; store the plain tag
    if name == "alg" and isinstance(value, str):
        value = str(getattr(value, "value", value))
    if not check(value):
        raise InvalidHeaderValueError(
            f"invalid value for header key {name!r}: expected {shape}, "
            f"got {type(value).__name__}"
        )
    if isinstance(value, (list, dict)):
        return copy.deepcopy(value)
    return value


class _Field:
    """Attribute access to an essential header field by wire name."""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return obj.get(self.name)

    def __set__(self, obj, value):
        obj.set(self.name, value)


class EssentialHeader:
    """RFC 7515 registered header parameters. ``None`` means absent."""

    algorithm = _Field("alg")
    content_type = _Field("cty")
    critical = _Field("crit")
    jwk = _Field("jwk")
    jwk_set_url = _Field("jku")
    key_id = _Field("kid")
    type = _Field("typ")
    x509_url = _Field("x5u")
    x509_cert_chain = _Field("x5c")
    x509_cert_thumbprint = _Field("x5t")
    x509_cert_thumbprint_s256 = _Field("x5t#S256")

    def __init__(self, **fields: Any):
        self._essential: Dict[str, Any] = {}
        for attr, value in fields.items():
            if not isinstance(getattr(type(self), attr, None), _Field):
                raise TypeError(f"unknown header field {attr!r}")
            setattr(self, attr, value)

    def get(self, name: str) -> Any:
        """Copy of the stored value; change fields through ``set`` only."""
        return copy.deepcopy(self._essential.get(name))

    def set(self, name: str, value: Any) -> None:
        if name not in ESSENTIAL_FIELDS:
            raise InvalidHeaderValueError(f"unknown essential header {name!r}")
        if value is None:
            self._essential.pop(name, None)
            return
        self._essential[name] = _normalize(name, value)


class Header(EssentialHeader):
    """Essential fields plus application-defined (private) parameters."""

    def __init__(self, private_params: Optional[Mapping[str, Any]] = None, **fields: Any):
        self._private: Dict[str, Any] = {}
        super().__init__(**fields)
        for name, value in (private_params or {}).items():
            self.set(name, value)

    @property
    def private_params(self) -> Mapping[str, Any]:
        """Read-only view; use ``set`` to change private parameters."""
        return MappingProxyType(copy.deepcopy(self._private))

    def get(self, name: str) -> Any:
        if name in ESSENTIAL_FIELDS:
            return super().get(name)
        return copy.deepcopy(self._private.get(name))

    def set(self, name: str, value: Any) -> None:
        """
        Set a header parameter by its wire name. ``None`` removes it.

        Raises InvalidHeaderValueError when an essential field gets a
        value of the wrong shape.
        """
        if name in ESSENTIAL_FIELDS:
            super().set(name, value)
        elif value is None:
            self._private.pop(name, None)
        else:
            self._private[name] = copy.deepcopy(value)

    def is_empty(self) -> bool:
        return not self._essential and not self._private

    def names(self) -> List[str]:
        ordered = [n for n in ESSENTIAL_FIELDS if n in self._essential]
        return ordered + list(self._private)

    def to_dict(self) -> Dict[str, Any]:
        """
        Wire form, essential fields first in RFC order.

        Registered names always land in the essential fields, so private
        names never shadow them.
        """
        result = {n: self._essential[n] for n in ESSENTIAL_FIELDS if n in self._essential}
        result.update(self._private)
        return copy.deepcopy(result)

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Header":
        if not isinstance(data, Mapping):
            raise InvalidHeaderValueError("header must be a JSON object")
        header = cls()
        for name, value in data.items():
            if value is None and name in ESSENTIAL_FIELDS:
                raise InvalidHeaderValueError(f"invalid value for header key {name!r}: null")
            header.set(name, value)
        return header

    def copy(self) -> "Header":
        return Header.from_dict(self.to_dict())

    def merge(self, other: Optional["Header"]) -> "Header":
        """New header with ``other``'s present values layered on top."""
        merged = self.copy()
        if other is not None:
            for name, value in other.to_dict().items():
                merged.set(name, value)
        return merged

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"


class EncodedHeader(Header):
    """
    Header that may carry the exact bytes it was parsed from.

    ``source`` is written once when parsing and read by every later
    signature computation. Mutating a field clears it. Concurrent readers
    are fine; clearing must happen before any concurrent verification.
    """

    def __init__(
        self,
        private_params: Optional[Mapping[str, Any]] = None,
        source: bytes = b"",
        **fields: Any,
    ):
        self.source = b""
        super().__init__(private_params, **fields)
        self.source = bytes(source)

    def set(self, name: str, value: Any) -> None:
        super().set(name, value)
        if self.source:
            logger.debug("encoded_header_source_cleared", header=name)
        self.source = b""

    def encode(self) -> bytes:
        """
        Exact bytes to base64url-encode: the captured source if any.

        An empty header with no source encodes to no bytes at all, so an
        entry without a protected member signs over "." + payload.
        """
        if self.source:
            return self.source
        if self.is_empty():
            return b""
        return self.to_json()

    @classmethod
    def from_header(cls, header: Optional[Header]) -> "EncodedHeader":
        encoded = cls()
        if header is not None:
            for name, value in header.to_dict().items():
                encoded.set(name, value)
        return encoded

    @classmethod
    def decode(cls, raw: bytes) -> "EncodedHeader":
        """
        Parse JSON header bytes and keep them as the source.

        Raises InvalidHeaderValueError for anything that is not a JSON
        object with correctly shaped fields.
        """
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidHeaderValueError(f"protected header is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise InvalidHeaderValueError("protected header must be a JSON object")

        encoded = cls.from_header(Header.from_dict(data))
        encoded.source = bytes(raw)
        return encoded

    def copy(self) -> "EncodedHeader":
        duplicate = EncodedHeader.from_header(self)
        duplicate.source = self.source
        return duplicate


class MergedHeader:
    """
    Read-only lookup over a protected and a public header.

    Protected values win on conflict. Security-relevant fields (``alg``,
    ``crit``) are read from the protected header only.
    """

    PROTECTED_ONLY = ("alg", "crit")

    def __init__(self, protected: Optional[EncodedHeader], public: Optional[Header]):
        self.protected = protected if protected is not None else EncodedHeader()
        self.public = public if public is not None else Header()

    def get(self, name: str) -> Any:
        value = self.protected.get(name)
        if value is not None or name in self.PROTECTED_ONLY:
            return value
        return self.public.get(name)

    @property
    def algorithm(self) -> Optional[str]:
        return self.protected.algorithm

    @property
    def critical(self) -> Optional[List[str]]:
        return self.protected.critical

    @property
    def key_id(self) -> Optional[str]:
        return self.get("kid")

    @property
    def type(self) -> Optional[str]:
        return self.get("typ")

    @property
    def content_type(self) -> Optional[str]:
        return self.get("cty")

    def to_dict(self) -> Dict[str, Any]:
        result = {
            n: v for n, v in self.public.to_dict().items() if n not in self.PROTECTED_ONLY
        }
        result.update(self.protected.to_dict())
        return result


def check_critical(header: MergedHeader, understood: Iterable[str] = ()) -> None:
    """
    Reject critical extensions the caller does not understand.

    Only the protected ``crit`` is consulted; an unprotected one is
    rejected when parsing. Every name in the protected ``crit`` list must
    be present in the protected header, must not be a registered name,
    and must be in ``understood``.
    """
    critical = header.protected.get("crit")
    if critical is None:
        return
    if not critical:
        raise InvalidHeaderValueError("crit must not be empty")

    known = set(understood)
    for name in critical:
        if name in ESSENTIAL_FIELDS:
            raise InvalidHeaderValueError(f"registered header {name!r} listed in crit")
        if header.protected.get(name) is None:
            raise InvalidHeaderValueError(f"critical header {name!r} missing from protected header")
        if name not in known:
            raise InvalidHeaderValueError(f"critical header {name!r} is not understood")
