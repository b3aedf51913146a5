"""Market simulation core: engine, broadcast hub, shocks and summaries."""
