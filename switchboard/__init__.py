"""Provider Switchboard

Registry, client and CLI for switching between chat-completion providers.
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("provider-switchboard")
except PackageNotFoundError:
    # Fallback for source checkouts
    __version__ = "1.0.0"
__author__ = "Provider Switchboard"
