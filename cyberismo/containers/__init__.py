"""Project storage: paths, configuration, card containers and the resource collector."""
