"""Identity asserted by an external OAuth provider."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExternalIdentityProfile:
    """Profile returned by the identity provider after a successful login.

    The provider has already verified the address, so accounts created
    from it start out verified.
    """

    email: str
    given_name: str = ""
    family_name: str = ""
