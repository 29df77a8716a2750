"""
                Bistro Boss API

REST backend for the Bistro Boss restaurant ordering app: menu, reviews,
carts, users and Stripe payments on top of MongoDB.
"""

__version__ = "1.0.0"
