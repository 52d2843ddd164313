class MastodonTimelineError(Exception):
    """Base class for every failure the CLI reports to the user."""


class CredentialsNotFoundError(MastodonTimelineError):
    """No stored credential; expected on first run."""


class CredentialsCorruptError(MastodonTimelineError):
    """A credential file exists but cannot be turned into a Credential."""


class CredentialsSaveError(MastodonTimelineError):
    pass


class RegistrationError(MastodonTimelineError):
    pass


class ExchangeError(MastodonTimelineError):
    pass


class BrowserOpenError(MastodonTimelineError):
    """The authorization URL could not be opened; the URL is still printed."""


class FetchError(MastodonTimelineError):
    pass
