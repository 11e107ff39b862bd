"""Configuration constants.

Values here are part of the Convex project layout or of the identifier
format that generated client code uses. They are not user-configurable.

For configurable values, see models.py (NavigatorConfig, SearchConfig, etc.).
"""

# =============================================================================
# Project Layout
# =============================================================================

CONVEX_CONFIG_FILENAME = "convex.config.ts"
"""Marker file at the definitions root (existence-only signal)."""

GENERATED_DIRNAME = "_generated"
"""Generated-output directory under the definitions root. Never scanned."""

GENERATED_INDEX_STEM = "api"
"""Generated API index file name, without extension, inside _generated/."""

DEFAULT_CONVEX_DIRNAME = "convex"
"""Conventional definitions root name used by the generated-index fallback."""

SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")
"""Ordered source extensions. Module resolution tries them in this order."""

LOCATOR_MAX_MATCHES = 5
"""Maximum marker files collected per workspace search."""

LOCATOR_PRUNED_DIRS: frozenset[str] = frozenset(
    (
        "node_modules",
        ".git",
        ".svn",
        ".hg",
        ".convexnav",
    )
)
"""Directories never entered while searching for project markers."""

# =============================================================================
# Identifier Format
# =============================================================================

IDENTIFIER_SEPARATOR = "."
"""Segment separator of the dot-path identifier."""

PUBLIC_NAMESPACE_TOKEN = "api"
"""Literal token for the public namespace."""

INTERNAL_NAMESPACE_TOKEN = "internal"
"""Literal token for the internal namespace."""

PUBLIC_NAMESPACE_ALIASES: tuple[str, ...] = ("public",)
"""Accepted on input as spellings of the public namespace."""

# =============================================================================
# Definitions
# =============================================================================

DEFAULT_CONVEX_WRAPPERS: tuple[str, ...] = (
    "query",
    "mutation",
    "action",
    "internalQuery",
    "internalMutation",
    "internalAction",
)
"""Function wrappers that ship with the Convex library."""

ARGS_PREVIEW_MAX_CHARS = 100
"""Longest args preview shown in hover summaries before truncation."""

# =============================================================================
# Usages
# =============================================================================

ACCESS_PATTERN_REGEX = (
    r"(useQuery|useMutation|useAction|usePaginatedQuery|useConvexQuery|"
    r"useConvexMutation|ctx\.(runQuery|runMutation|runAction))\s*\("
)
"""Calling conventions recognised on a usage line. Group 1 is the token."""

FALLBACK_MAX_FILES = 1000
"""Default cap on files read by the in-process fallback scan."""

RIPGREP_NO_MATCH_EXIT = 1
"""ripgrep exit status for "no matches"; not an error."""
