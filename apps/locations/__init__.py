"""Storage locations app.

Locations form a tree (warehouse, room, shelf) stored with django-mptt.
Equipment points at the location where it is kept.
"""
