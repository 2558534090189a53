"""Bundled data files for moxen."""
