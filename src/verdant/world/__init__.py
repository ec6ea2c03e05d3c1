"""Headless garden world: grid, catalog, snapshots and entity resolution."""
