"""Exceptions raised by the LG TV session client."""


class LGTVError(Exception):
    """General TV session error."""


class ConnectionRefused(LGTVError):
    """The TV could not be reached or the connection dropped."""


class ProtocolError(LGTVError):
    """The TV sent something we could not make sense of."""


class PairingError(LGTVError):
    """Pairing did not produce a client key."""


class PairingRejected(PairingError):
    """The pairing prompt was declined on the TV."""


class PairingTimeout(PairingError):
    """Nobody answered the pairing prompt in time."""


class CredentialInvalid(LGTVError):
    """The TV no longer accepts the stored client key."""


class NotReady(LGTVError):
    """A command was sent while no session is established."""
