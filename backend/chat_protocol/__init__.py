from .frames import TERMINAL_FRAME, DeltaChunk, decode_delta, encode_delta
from .sse import DATA_PREFIX, DONE_SENTINEL, SSEDataParser, aiter_sse_data, data_payload

__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "TERMINAL_FRAME",
    "DeltaChunk",
    "SSEDataParser",
    "aiter_sse_data",
    "data_payload",
    "decode_delta",
    "encode_delta",
]
