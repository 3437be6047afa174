from importlib import metadata

TITLE = "Okta OpenVPN Auth Plugin"
DISTRIBUTION = "okta-openvpn-auth-plugin"

# Overwritten by release builds
BUILD = "0"
DEV_BUILD = True


def get_version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0-dev"


def version_string(short: bool = False) -> str:
    """Returns "<version> build <build>", flagged when not a release build."""
    version = get_version()
    if short:
        return version
    text = f"{version} build {BUILD}"
    if DEV_BUILD:
        text += " [Developer Build]"
    return text
