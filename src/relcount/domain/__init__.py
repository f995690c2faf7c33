"""Domain layer: counter tracking engine and its ports."""
