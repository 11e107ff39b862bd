"""Resolver: Convex project location, identifier codec, definition and usage search."""

from convexnav.resolver.cancellation import CancellationToken
from convexnav.resolver.definitions import (
    DefinitionRecord,
    DefinitionScanner,
    FunctionKind,
    FunctionSummary,
    classify_kind,
)
from convexnav.resolver.matchers import (
    FallbackLineMatcher,
    LineMatch,
    MatcherUnavailable,
    RipgrepMatcher,
    ScanningMatcher,
)
from convexnav.resolver.navigator import HoverInfo, Location, Navigator
from convexnav.resolver.paths import DecodedIdentifier, Namespace, decode, encode, resolve_module
from convexnav.resolver.project import ProjectInfo, ProjectInfoCache, ProjectLocator
from convexnav.resolver.usages import SearchResult, UsageLocator, UsageRecord

__all__ = [
    "CancellationToken",
    # Definitions
    "DefinitionRecord",
    "DefinitionScanner",
    "FunctionKind",
    "FunctionSummary",
    "classify_kind",
    # Matchers
    "FallbackLineMatcher",
    "LineMatch",
    "MatcherUnavailable",
    "RipgrepMatcher",
    "ScanningMatcher",
    # Navigator
    "HoverInfo",
    "Location",
    "Navigator",
    # Paths
    "DecodedIdentifier",
    "Namespace",
    "decode",
    "encode",
    "resolve_module",
    # Project
    "ProjectInfo",
    "ProjectInfoCache",
    "ProjectLocator",
    # Usages
    "SearchResult",
    "UsageLocator",
    "UsageRecord",
]
