"""editorbridge - exposes local editor capabilities to a remote tool-calling client."""

__version__ = "0.3.0"
__logo__ = "🔌"
