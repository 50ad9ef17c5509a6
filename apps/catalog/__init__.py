"""Catalog app package.

Rooms and ancillary services that can be reserved, with their unit
prices. The booking core only reads from this catalog: it checks that
requested ids exist and snapshots their current price.
"""
