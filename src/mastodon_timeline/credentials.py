import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from .constants import CREDENTIALS_FILE
from .errors import CredentialsCorruptError, CredentialsNotFoundError, CredentialsSaveError
from .models.auth import Credential

logger = logging.getLogger(__name__)


class CredentialStore:
    """Reads and writes the access credential at a fixed per-user path."""

    path: Path

    def __init__(self, path: Path = CREDENTIALS_FILE):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Credential:
        if not self.path.exists():
            raise CredentialsNotFoundError(f"No credentials at {self.path}")

        try:
            text = self.path.read_text(encoding="utf-8")
            credential = Credential.model_validate_json(text)
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            raise CredentialsCorruptError(f"Cannot load credentials from {self.path}: {e}") from e

        logger.debug(f"Loaded credentials for {credential.server_base_url} from {self.path}")
        return credential

    def save(self, credential: Credential):
        """Write `credential`, replacing any previous file atomically."""
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(credential.model_dump_json(indent=2))
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise CredentialsSaveError(f"Cannot save credentials to {self.path}: {e}") from e

        logger.info(f"Credentials saved to {self.path}")
