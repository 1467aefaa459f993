"""Commerce Exports - data export job pipeline for the commerce back office."""
