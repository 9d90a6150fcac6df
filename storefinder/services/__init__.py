"""Business logic services.

Routes stay thin and call into these modules: listing, search, editing,
photos, hearts and ratings. Each operation opens its own session.
"""
