"""Application version and user agent."""

VERSION_MAJOR = 1
VERSION_MINOR = 3
VERSION_PATCH = 7
VERSION_DESC = "libere dorme"


def make_user_agent(major, minor, patch) -> str:
    """Build the user agent string for a version."""
    return f"hShop (3DS/CTR/KTR; ARMv6) 3hs/{major}.{minor}.{patch}"


VERSION = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
VVERSION = f"v{VERSION}"
USER_AGENT = make_user_agent(VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH)