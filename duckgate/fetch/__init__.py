"""Page fetching and article extraction."""
