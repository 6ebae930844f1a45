"""
Model registry for Plugstore.

Ensures every SQLAlchemy model is imported and registered on Base.metadata
before table creation or relationship configuration.
"""


def register_all_models():
    """Import all SQLAlchemy models so they're registered with SQLAlchemy."""
    from . import ActiveSession, Base, Plugin, PluginDependency, PluginStar, Release, User

    return {
        "Base": Base,
        "User": User,
        "ActiveSession": ActiveSession,
        "Plugin": Plugin,
        "PluginDependency": PluginDependency,
        "Release": Release,
        "PluginStar": PluginStar,
    }
