"""Equipment catalogue app.

Cameras, lenses, lights and the rest of the rental inventory, their rate
cards, maintenance history and the availability status the booking
lifecycle keeps in sync.
"""
