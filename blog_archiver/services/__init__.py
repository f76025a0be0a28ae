"""Services: pacing, listing collection, extraction, downloads, orchestration and search."""
