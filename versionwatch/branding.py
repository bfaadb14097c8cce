"""Library identity constants."""


class LibBranding:
    """Library identity constants."""

    LIB_NAME = "versionwatch"
    VERSION = "1.0.0"

    @classmethod
    def user_agent(cls) -> str:
        return f"{cls.LIB_NAME}/{cls.VERSION}"
