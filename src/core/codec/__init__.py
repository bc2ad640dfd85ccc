"""
Кодеки CoMID: CBOR (компактная бинарная форма) и JSON (текстовая форма).
"""

from .cbor import (
    decode_comid,
    decode_membership_triple,
    encode_comid,
    encode_membership_triple,
)
from .json_codec import decode_comid_json, decode_json, encode_comid_json, encode_json

__all__ = [
    # CBOR
    "encode_comid",
    "decode_comid",
    "encode_membership_triple",
    "decode_membership_triple",
    # JSON
    "encode_json",
    "decode_json",
    "encode_comid_json",
    "decode_comid_json",
]
