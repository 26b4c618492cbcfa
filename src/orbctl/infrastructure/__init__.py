"""Infrastructure layer: version store, orb/rule/config file I/O, history readers."""
