"""Static HTML page builders for the published site."""
