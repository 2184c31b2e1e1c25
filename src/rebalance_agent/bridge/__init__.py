from .callbacks import encode_funds_received_call
from .quoter import RouteQuoter, RouteUnavailable, parse_quote

__all__ = [
    "RouteQuoter",
    "RouteUnavailable",
    "encode_funds_received_call",
    "parse_quote",
]
