"""Normalize county parcel records into a linked set of canonical documents."""

__version__ = "0.1.0"
