import logging
from collections.abc import Callable
from dataclasses import dataclass

from .api import MastodonAPI
from .auth import AuthorizationFlow
from .credentials import CredentialStore
from .errors import CredentialsCorruptError, CredentialsNotFoundError
from .models.auth import Credential
from .models.status import Account

logger = logging.getLogger(__name__)


@dataclass
class Session:
    api: MastodonAPI
    credential: Credential
    registered: bool = False


def bootstrap(
    store: CredentialStore,
    flow: AuthorizationFlow,
    server_name_provider: Callable[[], str],
    force: bool = False,
) -> Session:
    """Load the stored credential, or register and authenticate a new one and save it.

    A corrupt credential file aborts the run unless `force` is set, so a
    broken file is never replaced without the user hearing about it.
    """
    if not force:
        try:
            credential = store.load()
            return Session(MastodonAPI.from_credential(credential), credential)
        except CredentialsNotFoundError as e:
            logger.info(f"{e}. This is fine if you're running this for the first time.")
    elif store.exists():
        try:
            store.load()
        except CredentialsCorruptError as e:
            logger.warning(f"Replacing unreadable credentials: {e}")
        else:
            logger.info(f"Replacing stored credentials at {store.path}")

    server_name = server_name_provider()
    pending = flow.register(server_name)
    credential = flow.authenticate(pending)
    store.save(credential)
    return Session(MastodonAPI.from_credential(credential), credential, registered=True)


def verify(session: Session) -> Account:
    account = session.api.verify_credentials()
    logger.info(f"Verified credentials for @{account.acct}")
    return account
