"""SRS scheduling, learning sessions and the stores they use."""
