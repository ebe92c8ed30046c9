"""agora

The domain core of a community platform: communities, posts and comments,
courses and lesson progress, spaces and channels, payment tiers, coupons,
subscriptions and notifications, with the persistence and messaging plumbing
around them.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
