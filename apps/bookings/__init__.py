"""Bookings app package.

This app holds the rental booking domain: the booking model with its
derived total cost, the conflict check that keeps an equipment item from
being booked twice for overlapping dates, and the status lifecycle from
``pending`` through ``completed`` or ``cancelled``. Conflict checks run
under a row lock on the equipment so concurrent requests are serialized.
"""
