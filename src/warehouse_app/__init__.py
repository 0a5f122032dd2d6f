"""Reference adapters and command line for :mod:`packaging_core`."""
