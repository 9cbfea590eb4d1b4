"""Per-strategy profile field extraction.

Each provider returns a differently shaped profile. One extractor per
supported strategy maps it onto the fields of an ExternalAssertion.
"""

from typing import Any

from hubauth.domain.value import AuthStrategy, ExternalAssertion


def _email_values(entries: Any) -> list[str]:
    """Pull the ``value`` out of a list of ``{"value": ...}`` email entries."""
    if not entries:
        return []
    return [
        entry.get("value") for entry in entries if isinstance(entry, dict)
    ]


class ProfileFieldExtractor:
    """Maps a raw provider profile onto assertion fields.

    Subclasses override only the fields their provider supplies.
    """

    strategy: AuthStrategy

    def external_id(self, profile: dict[str, Any]) -> Any:
        return profile["id"]

    def first_name(self, profile: dict[str, Any]) -> str | None:
        return None

    def last_name(self, profile: dict[str, Any]) -> str | None:
        return None

    def full_name(self, profile: dict[str, Any]) -> str | None:
        return None

    def emails(self, profile: dict[str, Any]) -> list[Any]:
        return []

    def build_assertion(self, profile: dict[str, Any]) -> ExternalAssertion:
        """Build the normalized assertion for this strategy."""
        return ExternalAssertion(
            strategy=self.strategy,
            external_id=self.external_id(profile),
            emails=self.emails(profile),
            first_name=self.first_name(profile),
            last_name=self.last_name(profile),
            full_name=self.full_name(profile),
            profile=profile,
        )


class GoogleProfileExtractor(ProfileFieldExtractor):
    """OpenID Connect profile with structured name and email list."""

    strategy = AuthStrategy.GOOGLE

    def first_name(self, profile: dict[str, Any]) -> str | None:
        return (profile.get("name") or {}).get("givenName")

    def last_name(self, profile: dict[str, Any]) -> str | None:
        return (profile.get("name") or {}).get("familyName")

    def emails(self, profile: dict[str, Any]) -> list[Any]:
        return _email_values(profile.get("emails"))


class GithubProfileExtractor(ProfileFieldExtractor):
    """GitHub profile; emails only present when the user made them visible."""

    strategy = AuthStrategy.GITHUB

    def full_name(self, profile: dict[str, Any]) -> str | None:
        return (
            profile.get("name") or profile.get("displayName") or profile.get("username")
        )

    def emails(self, profile: dict[str, Any]) -> list[Any]:
        return _email_values(profile.get("emails"))


class FacebookProfileExtractor(ProfileFieldExtractor):
    strategy = AuthStrategy.FACEBOOK

    def full_name(self, profile: dict[str, Any]) -> str | None:
        return profile.get("displayName")


class TwitterProfileExtractor(ProfileFieldExtractor):
    strategy = AuthStrategy.TWITTER

    def full_name(self, profile: dict[str, Any]) -> str | None:
        return profile.get("displayName")


STRATEGY_EXTRACTORS: dict[AuthStrategy, ProfileFieldExtractor] = {
    AuthStrategy.FACEBOOK: FacebookProfileExtractor(),
    AuthStrategy.GITHUB: GithubProfileExtractor(),
    AuthStrategy.GOOGLE: GoogleProfileExtractor(),
    AuthStrategy.TWITTER: TwitterProfileExtractor(),
}


def build_assertion(strategy: AuthStrategy, profile: dict[str, Any]) -> ExternalAssertion:
    """Build the normalized assertion for a provider profile.

    Args:
        strategy: Strategy that produced the profile
        profile: Raw provider profile

    Returns:
        Normalized external assertion
    """
    return STRATEGY_EXTRACTORS[strategy].build_assertion(profile)
