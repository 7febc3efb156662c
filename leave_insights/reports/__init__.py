"""Reports module — per-employee leave summaries, history and export."""
