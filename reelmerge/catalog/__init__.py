"""Search result normalization, aggregation, filtering and ranking."""
