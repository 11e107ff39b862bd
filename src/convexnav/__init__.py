"""Navigate between Convex backend functions and their api.* usages."""
