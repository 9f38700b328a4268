"""Query builders for ORMs."""
