class TokenAuthError(Exception):
    """Base class for every failure raised by tokenauth."""


class NetworkError(TokenAuthError):
    """The key document could not be fetched."""


class FormatError(TokenAuthError):
    """Malformed JSON, PEM, certificate or token structure."""


class KeyTypeError(TokenAuthError):
    """Key material is not RSA."""


class ConfigError(TokenAuthError):
    """Required configuration or response metadata is missing."""


class SignatureError(TokenAuthError):
    """Signature is malformed or does not match the signing input."""


class UnknownKeyIDError(TokenAuthError):
    def __init__(self, kid: str):
        self.kid = kid
        super().__init__(f"No public key found for key id '{kid}'.")
