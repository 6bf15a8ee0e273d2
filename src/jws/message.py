"""
JWS Message Envelope

A Message holds one payload and an ordered list of Signature entries.
Flattened serialization has no type of its own: it is a Message with a
single entry.
"""

from dataclasses import dataclass, field
from typing import List

from .encoding import signing_input
from .header import EncodedHeader, Header, MergedHeader


@dataclass
class Signature:
    """One (public header, protected header, signature bytes) entry."""
    public_header: Header = field(default_factory=Header)
    protected_header: EncodedHeader = field(default_factory=EncodedHeader)
    signature: bytes = b""

    def merged_headers(self) -> MergedHeader:
        return MergedHeader(self.protected_header, self.public_header)

    def signing_input(self, payload: bytes) -> bytes:
        return signing_input(self.protected_header, payload)


@dataclass
class Message:
    """Payload plus the signatures computed over it."""
    payload: bytes
    signatures: List[Signature] = field(default_factory=list)

    def lookup_signature(self, key_id: str) -> List[Signature]:
        """Entries whose merged ``kid`` equals ``key_id``."""
        return [s for s in self.signatures if s.merged_headers().key_id == key_id]
