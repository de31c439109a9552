"""Record feeds - schemas, validation, fetching and demo generation."""
