"""Query language and streaming search shared by every search domain."""

from .executor import CONTINUE, Continue, Domain, Stop, Visit, Visitor, run_visitor, search
from .query import Query, compile_query, compile_search, query_from_dict

__all__ = [
    "CONTINUE",
    "Continue",
    "Domain",
    "Stop",
    "Visit",
    "Visitor",
    "Query",
    "compile_query",
    "compile_search",
    "query_from_dict",
    "run_visitor",
    "search",
]
