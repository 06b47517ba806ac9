"""Metaplex token metadata: PDA derivation and account decoding.

A metadata account starts with a 1-byte key, the 32-byte update authority and
the 32-byte mint, followed by the name, symbol and URI text fields. Two
decoders are provided:

  * ``parse_metadata`` reads the text fields as fixed-width, null-padded
    slices (name 32, symbol 10, uri 200 bytes).
  * ``parse_metadata_borsh`` reads them as u32 length-prefixed strings, which
    is how the Metaplex program actually serializes them.

Both return a ``MetadataParse`` instead of raising; ``decode_metadata`` turns
that into a ``TokenIdentity`` with default values filled in.
"""
from dataclasses import dataclass
from typing import Optional, Dict, Tuple, Callable
import logging
import struct

from solders.pubkey import Pubkey
from solana.rpc.api import Client

from config import DEFAULT_METADATA_LAYOUT
from rpc import get_account_data

logger = logging.getLogger(__name__)

METAPLEX_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
# Account discriminator of a MetadataV1 account
METADATA_V1_KEY = 4

UNKNOWN_NAME = "Unknown Token"
UNKNOWN_SYMBOL = "???"


@dataclass(frozen=True)
class Field:
    name: str
    offset: int
    width: int

    @property
    def end(self) -> int:
        return self.offset + self.width


# Fixed-width metadata account layout, in on-chain order. This is an external
# binary contract; update the table (not the parsers) if the format changes.
METADATA_FIELDS: Tuple[Field, ...] = (
    Field("key", 0, 1),
    Field("update_authority", 1, 32),
    Field("mint", 33, 32),
    Field("name", 65, 32),
    Field("symbol", 97, 10),
    Field("uri", 107, 200),
)
TEXT_FIELDS = ("name", "symbol", "uri")
# Length-prefixed fields whose undecodable bytes become U+FFFD instead of
# failing the parse (fixed-width slices are always decoded that way)
LENIENT_FIELDS = {"uri"}
FIELDS_BY_NAME: Dict[str, Field] = {f.name: f for f in METADATA_FIELDS}


@dataclass(frozen=True)
class TokenIdentity:
    name: str = UNKNOWN_NAME
    symbol: str = UNKNOWN_SYMBOL


UNKNOWN_TOKEN = TokenIdentity()


@dataclass(frozen=True)
class MetadataParse:
    """Outcome of a byte-level parse: decoded text fields, or `error` set."""

    name: str = ""
    symbol: str = ""
    uri: str = ""
    error: Optional[str] = None

    @classmethod
    def failed(cls, reason: str) -> "MetadataParse":
        return cls(error=reason)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_identity(self) -> TokenIdentity:
        if not self.ok:
            return UNKNOWN_TOKEN
        return TokenIdentity(
            name=self.name or UNKNOWN_NAME,
            symbol=self.symbol or UNKNOWN_SYMBOL,
        )


def _clean_text(raw: bytes, strict: bool = False) -> str:
    # strict: invalid UTF-8 raises UnicodeDecodeError
    errors = "strict" if strict else "replace"
    return raw.decode("utf-8", errors=errors).replace("\x00", "").strip()


def _as_bytes(raw) -> Optional[bytes]:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    return None


def parse_metadata(raw: Optional[bytes]) -> MetadataParse:
    """Decode name/symbol/uri as fixed-width slices of `raw`.

    Slices past the end of a short buffer are simply empty, so truncated
    buffers yield empty fields rather than an error. Bytes that are not valid
    UTF-8, including a character cut by a slice edge, become U+FFFD. `None`
    (no account) yields an empty, successful parse.
    """
    if raw is None:
        return MetadataParse()
    data = _as_bytes(raw)
    if data is None:
        return MetadataParse.failed("unsupported buffer type %s" % type(raw).__name__)

    values: Dict[str, str] = {}
    for field in METADATA_FIELDS:
        if field.name in TEXT_FIELDS:
            values[field.name] = _clean_text(data[field.offset:field.end])
    return MetadataParse(**values)


def parse_metadata_borsh(raw: Optional[bytes]) -> MetadataParse:
    """Decode name/symbol/uri as u32 little-endian length-prefixed strings.

    The strings start right after the mint; the Metaplex program pads each one
    with nulls up to its maximum length, which `_clean_text` removes.
    """
    if raw is None:
        return MetadataParse()
    data = _as_bytes(raw)
    if data is None:
        return MetadataParse.failed("unsupported buffer type %s" % type(raw).__name__)
    if not data:
        return MetadataParse.failed("empty account data")
    if data[0] != METADATA_V1_KEY:
        return MetadataParse.failed("unexpected account key %d" % data[0])

    offset = FIELDS_BY_NAME["name"].offset
    values: Dict[str, str] = {}
    for name in TEXT_FIELDS:
        try:
            (length,) = struct.unpack_from("<I", data, offset)
        except struct.error:
            return MetadataParse.failed("%s: missing length prefix at offset %d" % (name, offset))
        offset += 4
        if offset + length > len(data):
            return MetadataParse.failed(
                "%s: length %d at offset %d overruns %d-byte buffer" % (name, length, offset, len(data))
            )
        try:
            values[name] = _clean_text(data[offset:offset + length], strict=name not in LENIENT_FIELDS)
        except UnicodeDecodeError as e:
            return MetadataParse.failed("%s field at offset %d: %s" % (name, offset, e))
        offset += length
    return MetadataParse(**values)


PARSERS: Dict[str, Callable[[Optional[bytes]], MetadataParse]] = {
    "fixed": parse_metadata,
    "borsh": parse_metadata_borsh,
}


def decode_metadata(
    raw: Optional[bytes],
    layout: str = DEFAULT_METADATA_LAYOUT,
    mint: Optional[str] = None,
) -> TokenIdentity:
    """Decode a metadata account into a TokenIdentity. Never raises.

    Parse failures are logged (with `mint` for context) and mapped to the
    default identity; empty fields get their individual defaults.
    """
    parser = PARSERS.get(layout, parse_metadata)
    result = parser(raw)
    if not result.ok:
        logger.warning("Metadata parsing error for mint %s: %s", mint or "<unknown>", result.error)
    return result.to_identity()


def find_metadata_pda(mint: str) -> Optional[Pubkey]:
    """Derive the metadata account address for `mint`, or None if it is not a valid key."""
    try:
        mint_pk = Pubkey.from_string(mint)
    except ValueError:
        return None
    program_pk = Pubkey.from_string(METAPLEX_PROGRAM_ID)
    pda, _ = Pubkey.find_program_address([b"metadata", bytes(program_pk), bytes(mint_pk)], program_pk)
    return pda


def get_token_metadata(
    client: Client,
    mint: str,
    layout: str = DEFAULT_METADATA_LAYOUT,
) -> TokenIdentity:
    """Fetch the metadata account for `mint` and decode its name and symbol.

    A missing account or an RPC failure gives the default identity.
    """
    pda = find_metadata_pda(mint)
    if pda is None:
        logger.warning("Cannot derive metadata address for mint %s", mint)
        return UNKNOWN_TOKEN

    try:
        raw = get_account_data(client, pda)
    except Exception as e:
        logger.error("Error fetching metadata for mint %s: %s", mint, e)
        return UNKNOWN_TOKEN

    if raw is None:
        logger.debug("metadata: no account at %s for mint %s", pda, mint)
        return UNKNOWN_TOKEN

    return decode_metadata(raw, layout=layout, mint=mint)
