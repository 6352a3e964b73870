"""Navigator service: resolves the next set of selectable sub-categories."""
