import os
import sys
from pathlib import Path

APP_NAME = "mastodon-timeline"


def get_user_config_dir() -> Path:
    """Per-user configuration directory for APP_NAME."""
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


# Configuration
CONFIG_DIR = get_user_config_dir()
CREDENTIALS_FILE = CONFIG_DIR / "credentials.json"

# OAuth client registration
CLIENT_NAME = "mastodon-timeline-cli"
CLIENT_WEBSITE = "https://github.com/mastodon-timeline/mastodon-timeline-cli"
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
READ_ALL_SCOPES = frozenset({"read"})

# HTTP
USER_AGENT = "mastodon-timeline-cli/0.1.0"
REQUEST_TIMEOUT = 30.0
